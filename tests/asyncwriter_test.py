import os
import shutil
import tempfile
import unittest
from random import randint, random, choices, seed
from string import ascii_letters, digits

from gridsim.utils.async_writer import AsyncWriter


class AsyncWriterTests(unittest.TestCase):

    def setUp(self):
        self.folder = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.folder, ignore_errors=True)

    def randomwrite(self, fp, n, v=50):
        seed('async_test')
        writer = AsyncWriter(fp)
        writer.start()

        counter = 0
        fake_lines = [''.join(choices(digits + ascii_letters, k=randint(100, 200))) + '\n' for _ in range(v)]

        for i in range(n):
            if random() < 0.2:
                continue
            nlines = randint(0, 100)
            counter += nlines
            for _ in range(nlines):
                line = fake_lines[randint(0, v - 1)]
                writer.push(line)

        writer.stop()
        return counter

    def countlines(self, fp):
        if not os.path.isfile(fp):
            return 0
        with open(fp) as f:
            return len(list(f))

    def test_randomwrite(self):
        iterations = (500, 5000)
        results = []
        for i in iterations:
            fp = os.path.join(self.folder, 'aw_tests_{}.out'.format(i))
            generated_lines = self.randomwrite(fp, i)
            written_lines = self.countlines(fp)
            results.append((generated_lines, written_lines,))
        self.assertTrue(all(t[0] == t[1] for t in results))

    def test_pre_process(self):
        fp = os.path.join(self.folder, 'pre_process.out')
        writer = AsyncWriter(fp, pre_process_fun=lambda entry: ';'.join(str(v) for v in entry) + '\n', buffer_size=2)
        writer.start()
        for i in range(5):
            writer.push((i, i * 2))
        writer.stop()
        with open(fp) as f:
            self.assertEqual(f.read().splitlines(), ['{};{}'.format(i, i * 2) for i in range(5)])

    def test_stop_without_start(self):
        fp = os.path.join(self.folder, 'not_started.out')
        writer = AsyncWriter(fp, pre_process_fun=lambda entry: [entry + '\n', entry + '\n'])
        writer.push('line')
        writer.stop()
        self.assertEqual(self.countlines(fp), 2)


if __name__ == '__main__':
    unittest.main()

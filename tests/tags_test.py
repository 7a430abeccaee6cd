import unittest

from gridsim.base.tags import GridSimTags, GridletStatus


class TagsTests(unittest.TestCase):

    def test_busy_time_seconds(self):
        self.assertEqual(GridSimTags.approx_busy_time(0.5), GridSimTags.AR_CREATE_FAIL_RESOURCE_FULL_IN_1_SEC)
        self.assertEqual(GridSimTags.approx_busy_time(3), GridSimTags.AR_CREATE_FAIL_RESOURCE_FULL_IN_5_SECS)
        self.assertEqual(GridSimTags.approx_busy_time(59), GridSimTags.AR_CREATE_FAIL_RESOURCE_FULL_IN_45_SECS)

    def test_busy_time_minutes(self):
        self.assertEqual(GridSimTags.approx_busy_time(60), GridSimTags.AR_CREATE_FAIL_RESOURCE_FULL_IN_1_MIN)
        # 6 minutes are rounded up
        self.assertEqual(GridSimTags.approx_busy_time(6 * 60), GridSimTags.AR_CREATE_FAIL_RESOURCE_FULL_IN_10_MINS)
        self.assertEqual(GridSimTags.approx_busy_time(50 * 60), GridSimTags.AR_CREATE_FAIL_RESOURCE_FULL_IN_45_MINS)

    def test_busy_time_hours(self):
        self.assertEqual(GridSimTags.approx_busy_time(3600), GridSimTags.AR_CREATE_FAIL_RESOURCE_FULL_IN_1_HOUR)
        self.assertEqual(GridSimTags.approx_busy_time(12 * 3600), GridSimTags.AR_CREATE_FAIL_RESOURCE_FULL_IN_15_HOURS)
        self.assertEqual(GridSimTags.approx_busy_time(100 * 3600), GridSimTags.AR_CREATE_FAIL_RESOURCE_FULL_IN_45_HOURS)

    def test_status_label(self):
        self.assertEqual(GridletStatus.SUCCESS.label, 'Success')
        self.assertEqual(GridletStatus.FAILED_RESOURCE_UNAVAILABLE.label, 'Failed Resource Unavailable')
        self.assertEqual(GridletStatus(3), GridletStatus.INEXEC)


if __name__ == '__main__':
    unittest.main()

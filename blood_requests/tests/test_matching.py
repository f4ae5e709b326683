from django.test import TestCase

from blood_requests.matching import donors_for_request, nearby_donors, requests_within
from blood_requests.models import BloodRequest
from .utils import KTM_LAT, KTM_LON, make_request, make_user

# Bhaktapur (~13 km east of Kathmandu) and Pokhara (~140 km west)
BKT_LAT, BKT_LON = 27.6710, 85.4298
PKR_LAT, PKR_LON = 28.2096, 83.9856


class NearbyDonorTests(TestCase):
    def setUp(self):
        self.near = make_user(blood_group='O-', latitude=BKT_LAT, longitude=BKT_LON)
        self.here = make_user(blood_group='O-')
        self.far = make_user(blood_group='O-', latitude=PKR_LAT, longitude=PKR_LON)

    def test_within_radius_nearest_first(self):
        matches = nearby_donors(KTM_LAT, KTM_LON, blood_group='O-', radius_km=50)

        self.assertEqual([donor for donor, _ in matches], [self.here, self.near])
        self.assertAlmostEqual(matches[0][1], 0.0, places=3)
        self.assertTrue(10 < matches[1][1] < 15)

    def test_radius_is_in_kilometres(self):
        matches = nearby_donors(KTM_LAT, KTM_LON, blood_group='O-', radius_km=200)
        self.assertIn(self.far, [donor for donor, _ in matches])

    def test_blood_group_must_match_exactly(self):
        make_user(blood_group='O+')
        matches = nearby_donors(KTM_LAT, KTM_LON, blood_group='O+', radius_km=50)
        self.assertEqual(len(matches), 1)
        self.assertEqual(matches[0][0].blood_group, 'O+')

    def test_unavailable_and_non_donors_skipped(self):
        make_user(blood_group='O-', is_available=False)
        make_user(blood_group='O-', is_donor=False)
        make_user(blood_group='O-', latitude=None, longitude=None)

        matches = nearby_donors(KTM_LAT, KTM_LON, blood_group='O-', radius_km=50)
        self.assertEqual({donor.pk for donor, _ in matches}, {self.here.pk, self.near.pk})

    def test_requester_never_matches_own_request(self):
        blood_request = make_request(self.here, blood_group='O-')

        matches = donors_for_request(blood_request)
        self.assertNotIn(self.here, [donor for donor, _ in matches])
        self.assertIn(self.near, [donor for donor, _ in matches])


class RequestsWithinTests(TestCase):
    def test_filters_requests_by_distance(self):
        requester = make_user()
        nearby = make_request(requester, latitude=BKT_LAT, longitude=BKT_LON)
        make_request(requester, latitude=PKR_LAT, longitude=PKR_LON)

        queryset = requests_within(BloodRequest.objects.all(), KTM_LAT, KTM_LON, 50)
        self.assertEqual(list(queryset), [nearby])


class AntimeridianTests(TestCase):
    def test_donor_across_the_antimeridian_is_found(self):
        # about 22 km apart on either side of longitude 180
        requester = make_user(latitude=0.0, longitude=179.9)
        donor = make_user(blood_group='O-', latitude=0.0, longitude=-179.9)

        matches = nearby_donors(0.0, 179.9, 'O-', radius_km=50, exclude=requester.pk)

        self.assertEqual([match for match, _ in matches], [donor])
        self.assertTrue(20 < matches[0][1] < 25)

    def test_request_across_the_antimeridian_is_found(self):
        requester = make_user()
        blood_request = make_request(requester, latitude=0.0, longitude=-179.9)

        queryset = requests_within(BloodRequest.objects.all(), 0.0, 179.9, 50)
        self.assertEqual(list(queryset), [blood_request])

from unittest.mock import patch

from rest_framework import status
from rest_framework.test import APITestCase

from accounts.serializers import get_tokens_for_user
from blood_requests.models import BloodRequest
from .utils import KTM_LAT, KTM_LON, make_request, make_user


def create_payload(**overrides):
    payload = {
        'bloodGroup': 'O-',
        'urgency': 'critical',
        'contact': '9800000000',
        'location': {
            'type': 'Point',
            'coordinates': [KTM_LON, KTM_LAT],
            'address': 'Bir Hospital, Kathmandu',
        },
        'units': 2,
        'patientName': 'Ram Bahadur',
        'notes': 'Surgery tomorrow morning',
    }
    payload.update(overrides)
    return payload


class AuthenticatedTestCase(APITestCase):
    def authenticate(self, user):
        token = get_tokens_for_user(user)['access']
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')


@patch('blood_requests.services.dispatch')
class CreateAndListTests(AuthenticatedTestCase):
    def setUp(self):
        self.requester = make_user(blood_group='A+')
        self.authenticate(self.requester)

    def test_anonymous_rejected(self, dispatch):
        self.client.credentials()
        response = self.client.post('/api/blood-requests/', create_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data['success'])

    def test_create(self, dispatch):
        make_user(blood_group='O-')

        response = self.client.post('/api/blood-requests/', create_payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['nearbyDonorsCount'], 1)
        data = response.data['data']
        self.assertEqual(data['status'], 'open')
        self.assertEqual(data['unitsNeeded'], 2)
        self.assertEqual(data['responses'], [])
        self.assertEqual(data['fulfilledBy'], [])
        self.assertTrue(data['isEmergency'])
        self.assertEqual(data['requester']['id'], self.requester.pk)
        self.assertEqual(data['location']['coordinates'], [KTM_LON, KTM_LAT])

    def test_create_schedules_fan_out_after_commit(self, dispatch):
        with patch('blood_requests.signals.fan_out_blood_request') as task:
            with self.captureOnCommitCallbacks(execute=True):
                response = self.client.post('/api/blood-requests/', create_payload(), format='json')

        task.delay.assert_called_once_with(response.data['data']['id'])

    def test_create_requires_address(self, dispatch):
        payload = create_payload(location={'coordinates': [KTM_LON, KTM_LAT], 'address': '  '})
        response = self.client.post('/api/blood-requests/', payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('location', response.data['errors'])
        self.assertFalse(BloodRequest.objects.exists())

    def test_create_rejects_zero_units(self, dispatch):
        response = self.client.post('/api/blood-requests/', create_payload(units=0), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('units', response.data['errors'])

    def test_list_is_paginated(self, dispatch):
        for _ in range(3):
            make_request(self.requester)

        response = self.client.get('/api/blood-requests/', {'limit': 2})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['data']), 2)
        self.assertEqual(response.data['pagination'], {'page': 1, 'limit': 2, 'total': 3, 'pages': 2})

    def test_list_filters(self, dispatch):
        other = make_user()
        make_request(self.requester, blood_group='A+')
        cancelled = make_request(other, blood_group='B+', status=BloodRequest.Status.CANCELLED)

        by_group = self.client.get('/api/blood-requests/', {'bloodGroup': 'B+'})
        self.assertEqual([item['id'] for item in by_group.data['data']], [cancelled.pk])

        by_status = self.client.get('/api/blood-requests/', {'status': 'open'})
        self.assertEqual(by_status.data['pagination']['total'], 1)

        by_user = self.client.get('/api/blood-requests/', {'userId': other.pk})
        self.assertEqual([item['id'] for item in by_user.data['data']], [cancelled.pk])

    def test_search_matches_contact_number(self, dispatch):
        by_phone = make_request(self.requester, contact='9841234567')
        make_request(self.requester, contact='9800000000')

        response = self.client.get('/api/blood-requests/', {'search': '98412'})
        self.assertEqual([item['id'] for item in response.data['data']], [by_phone.pk])

    def test_list_near_a_point(self, dispatch):
        near = make_request(self.requester)
        make_request(self.requester, latitude=28.2096, longitude=83.9856)

        response = self.client.get('/api/blood-requests/', {
            'latitude': KTM_LAT, 'longitude': KTM_LON, 'radius': 25,
        })
        self.assertEqual([item['id'] for item in response.data['data']], [near.pk])

    def test_mine(self, dispatch):
        mine = make_request(self.requester)
        make_request(make_user())

        response = self.client.get('/api/blood-requests/mine/')
        self.assertEqual([item['id'] for item in response.data['data']], [mine.pk])

    def test_retrieve_missing(self, dispatch):
        response = self.client.get('/api/blood-requests/424242/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(response.data['success'])


@patch('blood_requests.services.dispatch')
class LifecycleEndpointTests(AuthenticatedTestCase):
    def setUp(self):
        self.requester = make_user()
        self.donor = make_user()
        self.blood_request = make_request(self.requester, blood_group='O-', units_needed=2)

    def url(self, suffix=''):
        return f'/api/blood-requests/{self.blood_request.pk}/{suffix}'

    def test_respond_and_fulfill(self, dispatch):
        self.authenticate(self.donor)
        response = self.client.post(self.url('respond/'), {'message': 'Coming', 'canDonate': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['data']['responses']), 1)
        self.assertEqual(response.data['data']['responses'][0]['donor']['id'], self.donor.pk)

        self.authenticate(self.requester)
        response = self.client.post(
            self.url('fulfill/'), {'donorId': self.donor.pk, 'unitsProvided': 2}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['status'], 'fulfilled')
        self.assertEqual(len(data['fulfilledBy']), 1)
        self.assertEqual(data['fulfilledBy'][0]['unitsProvided'], 2)
        self.assertEqual(data['unitsFulfilled'], 2)

        self.donor.refresh_from_db()
        self.assertEqual(self.donor.donation_count, 1)

    def test_respond_to_own_request(self, dispatch):
        self.authenticate(self.requester)
        response = self.client.post(self.url('respond/'), {}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'You cannot respond to your own blood request.')

    def test_respond_twice(self, dispatch):
        self.authenticate(self.donor)
        self.client.post(self.url('respond/'), {}, format='json')
        response = self.client.post(self.url('respond/'), {}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'You have already responded to this request')

    def test_respond_to_cancelled_request(self, dispatch):
        self.blood_request.status = BloodRequest.Status.CANCELLED
        self.blood_request.save()

        self.authenticate(self.donor)
        response = self.client.post(self.url('respond/'), {}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Cannot respond to inactive blood request')
        self.assertFalse(self.blood_request.responses.exists())

    def test_fulfill_by_stranger_forbidden(self, dispatch):
        self.authenticate(self.donor)
        response = self.client.post(
            self.url('fulfill/'), {'donorId': self.donor.pk, 'unitsProvided': 1}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_fulfill_unknown_donor(self, dispatch):
        self.authenticate(self.requester)
        response = self.client.post(self.url('fulfill/'), {'donorId': 999999, 'unitsProvided': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Donor not found')

    def test_status_update(self, dispatch):
        self.authenticate(self.requester)
        response = self.client.put(self.url('status/'), {'status': 'cancelled'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['status'], 'cancelled')

    def test_status_update_rejects_unknown_value(self, dispatch):
        self.authenticate(self.requester)
        response = self.client.put(self.url('status/'), {'status': 'matched'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('status', response.data['errors'])

    def test_complete(self, dispatch):
        self.authenticate(self.requester)
        response = self.client.post(self.url('complete/'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['status'], 'fulfilled')

    def test_malformed_id_is_not_found(self, dispatch):
        self.authenticate(self.requester)
        calls = [
            ('post', 'respond/', {}),
            ('post', 'fulfill/', {'donorId': self.donor.pk, 'unitsProvided': 1}),
            ('put', 'status/', {'status': 'cancelled'}),
            ('post', 'complete/', {}),
            ('patch', '', {'notes': 'x'}),
            ('delete', '', {}),
        ]
        for method, suffix, payload in calls:
            with self.subTest(method=method, suffix=suffix):
                response = getattr(self.client, method)(
                    f'/api/blood-requests/abc/{suffix}', payload, format='json'
                )
                self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
                self.assertEqual(response.data['message'], 'Blood request not found')


@patch('blood_requests.services.dispatch')
class EditAndDeleteEndpointTests(AuthenticatedTestCase):
    def setUp(self):
        self.requester = make_user()
        self.blood_request = make_request(self.requester, units_needed=2)
        self.url = f'/api/blood-requests/{self.blood_request.pk}/'

    def test_owner_patches_fields(self, dispatch):
        self.authenticate(self.requester)
        response = self.client.patch(self.url, {
            'units': 3,
            'location': {'coordinates': [KTM_LON, KTM_LAT], 'address': 'Teaching Hospital'},
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['unitsNeeded'], 3)
        self.assertEqual(response.data['data']['location']['address'], 'Teaching Hospital')
        self.assertEqual(response.data['data']['patientName'], 'Test Patient')

    def test_put_changes_only_fields_sent(self, dispatch):
        self.authenticate(self.requester)
        response = self.client.put(self.url, {'contact': '9841000000'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['contact'], '9841000000')
        self.assertEqual(response.data['data']['unitsNeeded'], 2)

    def test_status_is_not_editable_here(self, dispatch):
        self.authenticate(self.requester)
        response = self.client.patch(self.url, {'status': 'cancelled', 'notes': 'x'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('status', response.data['errors'])
        self.blood_request.refresh_from_db()
        self.assertEqual(self.blood_request.status, BloodRequest.Status.OPEN)

    def test_location_needs_coordinates(self, dispatch):
        self.authenticate(self.requester)
        response = self.client.patch(self.url, {'location': {'address': 'Somewhere'}}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_stranger_cannot_edit_or_delete(self, dispatch):
        self.authenticate(make_user())

        self.assertEqual(
            self.client.patch(self.url, {'notes': 'x'}, format='json').status_code,
            status.HTTP_403_FORBIDDEN
        )
        self.assertEqual(self.client.delete(self.url).status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(BloodRequest.objects.filter(pk=self.blood_request.pk).exists())

    def test_owner_deletes(self, dispatch):
        self.authenticate(self.requester)
        response = self.client.delete(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertFalse(BloodRequest.objects.filter(pk=self.blood_request.pk).exists())
        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_404_NOT_FOUND)

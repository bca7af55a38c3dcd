"""
Flocks — API Integration Tests

Batch endpoints and the ledger actions: bird counts, availability,
history and allocations.

@file flocks/tests/test_views.py
"""

import pytest
from django.urls import reverse
from rest_framework import status

from flocks.models import BirdCountHistory
from tests.factories import BatchAllocationFactory, BatchFactory, HouseFactory

pytestmark = pytest.mark.django_db


class TestBatchEndpoints:
    def test_create_batch(self, manager_client, farm):
        response = manager_client.post(
            reverse('api-v1:flocks:batch-list'),
            {'name': 'B-01', 'chicken_type': 'Layer', 'original_count': 1000, 'age_at_arrival': 1},
            format='json',
        )
        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['current_count'] == 1000
        assert str(response.data['farm']) == str(farm.pk)

    def test_worker_cannot_create_batch(self, worker_client):
        response = worker_client.post(
            reverse('api-v1:flocks:batch-list'),
            {'name': 'B-01', 'chicken_type': 'Layer', 'original_count': 1000},
            format='json',
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_list_with_allocation_totals(self, worker_client, farm):
        batch = BatchFactory(farm=farm, original_count=1000)
        BatchAllocationFactory(batch=batch, quantity=400)
        BatchFactory()
        response = worker_client.get(reverse('api-v1:flocks:batch-list'), {'include_allocations': 'true'})
        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1
        row = response.data['results'][0]
        assert row['allocated_count'] == 400
        assert row['unallocated_count'] == 600

    def test_list_without_allocation_totals(self, worker_client, farm):
        BatchFactory(farm=farm)
        response = worker_client.get(reverse('api-v1:flocks:batch-list'))
        assert response.data['results'][0]['allocated_count'] is None

    def test_other_farm_batch_is_not_found(self, worker_client):
        batch = BatchFactory()
        response = worker_client.get(reverse('api-v1:flocks:batch-detail', kwargs={'pk': batch.pk}))
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_update_cannot_touch_counts(self, manager_client, farm):
        batch = BatchFactory(farm=farm, original_count=100)
        response = manager_client.patch(
            reverse('api-v1:flocks:batch-detail', kwargs={'pk': batch.pk}),
            {'name': 'Renamed', 'dead': 50, 'original_count': 10},
            format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.data['name'] == 'Renamed'
        assert response.data['dead'] == 0
        assert response.data['original_count'] == 100

    def test_archive_and_unarchive(self, manager_client, farm):
        batch = BatchFactory(farm=farm)
        response = manager_client.post(reverse('api-v1:flocks:batch-archive', kwargs={'pk': batch.pk}))
        assert response.data['is_archived'] is True
        response = manager_client.post(reverse('api-v1:flocks:batch-unarchive', kwargs={'pk': batch.pk}))
        assert response.data['is_archived'] is False

    def test_delete_allocated_batch_conflict(self, manager_client, farm):
        batch = BatchFactory(farm=farm)
        BatchAllocationFactory(batch=batch, quantity=10)
        response = manager_client.delete(reverse('api-v1:flocks:batch-detail', kwargs={'pk': batch.pk}))
        assert response.status_code == status.HTTP_409_CONFLICT


class TestBirdCountsEndpoint:
    def test_worker_records_losses(self, worker_client, farm):
        batch = BatchFactory(farm=farm, original_count=1000)
        url = reverse('api-v1:flocks:batch-bird-counts', kwargs={'pk': batch.pk})

        worker_client.post(url, {'dead': 10}, format='json')
        response = worker_client.post(url, {'culled': 5, 'offlaid': 3, 'reason': 'weekly sort'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        data = response.json()['data']
        assert data['batch']['current_count'] == 982
        assert data['changes'] == {'dead': 0, 'culled': 5, 'offlaid': 3}
        entry = BirdCountHistory.objects.get(pk=data['history_id'])
        assert entry.reason == 'weekly sort'

    def test_losses_in_house(self, worker_client, farm):
        batch = BatchFactory(farm=farm, original_count=1000)
        house = HouseFactory(farm=farm)
        allocation = BatchAllocationFactory(batch=batch, house=house, quantity=300)
        response = worker_client.post(
            reverse('api-v1:flocks:batch-bird-counts', kwargs={'pk': batch.pk}),
            {'dead': 7, 'house': str(house.pk)},
            format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        allocation.refresh_from_db()
        assert allocation.quantity == 293

    def test_negative_delta_rejected(self, worker_client, farm):
        batch = BatchFactory(farm=farm)
        response = worker_client.post(
            reverse('api-v1:flocks:batch-bird-counts', kwargs={'pk': batch.pk}),
            {'dead': -1},
            format='json',
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_zero_delta_accepted(self, worker_client, farm):
        batch = BatchFactory(farm=farm, original_count=50)
        response = worker_client.post(
            reverse('api-v1:flocks:batch-bird-counts', kwargs={'pk': batch.pk}),
            {'dead': 0, 'reason': 'daily check, no losses'},
            format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()['data']['batch']['current_count'] == 50
        assert BirdCountHistory.objects.filter(batch=batch).count() == 1

    def test_empty_delta_rejected(self, worker_client, farm):
        batch = BatchFactory(farm=farm)
        response = worker_client.post(
            reverse('api-v1:flocks:batch-bird-counts', kwargs={'pk': batch.pk}),
            {'reason': 'nothing happened'},
            format='json',
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'INVALID_INPUT'

    def test_losses_past_original_count_conflict(self, worker_client, farm):
        batch = BatchFactory(farm=farm, original_count=10, dead=8)
        response = worker_client.post(
            reverse('api-v1:flocks:batch-bird-counts', kwargs={'pk': batch.pk}),
            {'dead': 5},
            format='json',
        )
        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['errors']['requested'] == 5
        assert response.data['errors']['current_count'] == 2

    def test_other_farm_batch_not_found(self, worker_client):
        batch = BatchFactory()
        response = worker_client.post(
            reverse('api-v1:flocks:batch-bird-counts', kwargs={'pk': batch.pk}),
            {'dead': 1},
            format='json',
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestLedgerReads:
    def test_availability(self, worker_client, farm):
        batch = BatchFactory(farm=farm, original_count=1000, dead=10, culled=5, offlaid=3)
        BatchAllocationFactory(batch=batch, quantity=500)
        response = worker_client.get(reverse('api-v1:flocks:batch-availability', kwargs={'pk': batch.pk}))
        assert response.status_code == status.HTTP_200_OK
        assert response.data['unallocated_count'] == 482

    def test_history(self, worker_client, farm):
        batch = BatchFactory(farm=farm, original_count=100)
        url = reverse('api-v1:flocks:batch-bird-counts', kwargs={'pk': batch.pk})
        for _ in range(3):
            worker_client.post(url, {'dead': 1}, format='json')

        response = worker_client.get(
            reverse('api-v1:flocks:batch-history', kwargs={'pk': batch.pk}), {'limit': 2},
        )
        assert response.status_code == status.HTTP_200_OK
        assert [row['batch_revision'] for row in response.data] == [3, 2]

    def test_history_invalid_limit(self, worker_client, farm):
        batch = BatchFactory(farm=farm)
        response = worker_client.get(
            reverse('api-v1:flocks:batch-history', kwargs={'pk': batch.pk}), {'limit': 0},
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_batch_allocations(self, worker_client, farm):
        batch = BatchFactory(farm=farm)
        BatchAllocationFactory(batch=batch, quantity=25)
        response = worker_client.get(reverse('api-v1:flocks:batch-allocations', kwargs={'pk': batch.pk}))
        assert response.status_code == status.HTTP_200_OK
        assert [row['quantity'] for row in response.data] == [25]

    @pytest.mark.parametrize('path', [
        '/api/v1/batches/abc/',
        '/api/v1/batches/abc/availability/',
        '/api/v1/batches/abc/history/',
        '/api/v1/batches/12345/allocations/',
    ])
    def test_malformed_batch_id_not_found(self, worker_client, path):
        assert worker_client.get(path).status_code == status.HTTP_404_NOT_FOUND

"""
Allocations — API Integration Tests

Allocate, correct and transfer endpoints with role checks and farm
scoping.

@file allocations/tests/test_views.py
"""

import pytest
from django.urls import reverse
from rest_framework import status

from allocations.models import BatchAllocation
from tests.factories import BatchAllocationFactory, BatchFactory, HouseFactory

pytestmark = pytest.mark.django_db


class TestAllocateEndpoint:
    def test_allocate_created(self, manager_client, farm):
        batch = BatchFactory(farm=farm, original_count=1000)
        house = HouseFactory(farm=farm, capacity=600)
        response = manager_client.post(
            reverse('api-v1:allocations:allocation-list'),
            {'batch': str(batch.pk), 'house': str(house.pk), 'quantity': 500},
            format='json',
        )
        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['quantity'] == 500
        assert response.data['house_name'] == house.name

    def test_allocate_into_existing_returns_ok(self, manager_client, farm):
        allocation = BatchAllocationFactory(batch=BatchFactory(farm=farm), quantity=100)
        response = manager_client.post(
            reverse('api-v1:allocations:allocation-list'),
            {'batch': str(allocation.batch_id), 'house': str(allocation.house_id), 'quantity': 20},
            format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.data['quantity'] == 120

    def test_insufficient_unallocated_reports_figures(self, manager_client, farm):
        batch = BatchFactory(farm=farm, original_count=1000, dead=10, culled=5, offlaid=3)
        BatchAllocationFactory(batch=batch, quantity=500)
        house = HouseFactory(farm=farm, capacity=None)
        response = manager_client.post(
            reverse('api-v1:allocations:allocation-list'),
            {'batch': str(batch.pk), 'house': str(house.pk), 'quantity': 600},
            format='json',
        )
        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['code'] == 'INSUFFICIENT_UNALLOCATED'
        assert response.data['errors']['requested'] == 600
        assert response.data['errors']['unallocated'] == 482

    def test_worker_cannot_allocate(self, worker_client, farm):
        batch = BatchFactory(farm=farm)
        house = HouseFactory(farm=farm)
        response = worker_client.post(
            reverse('api-v1:allocations:allocation-list'),
            {'batch': str(batch.pk), 'house': str(house.pk), 'quantity': 1},
            format='json',
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_outsider_cannot_see_batch(self, outsider_client, farm):
        batch = BatchFactory(farm=farm)
        house = HouseFactory(farm=farm)
        response = outsider_client.post(
            reverse('api-v1:allocations:allocation-list'),
            {'batch': str(batch.pk), 'house': str(house.pk), 'quantity': 1},
            format='json',
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestAllocationList:
    def test_list_scoped_and_filtered(self, worker_client, farm):
        batch = BatchFactory(farm=farm)
        BatchAllocationFactory(batch=batch, quantity=10)
        BatchAllocationFactory(batch=BatchFactory(farm=farm), quantity=20)
        BatchAllocationFactory(quantity=30)

        response = worker_client.get(reverse('api-v1:allocations:allocation-list'))
        assert response.data['count'] == 2

        response = worker_client.get(reverse('api-v1:allocations:allocation-list'), {'batch': str(batch.pk)})
        assert [row['quantity'] for row in response.data['results']] == [10]


class TestUpdateQuantityEndpoint:
    def test_update(self, manager_client, farm):
        allocation = BatchAllocationFactory(batch=BatchFactory(farm=farm, original_count=100), quantity=40)
        response = manager_client.patch(
            reverse('api-v1:allocations:allocation-detail', kwargs={'pk': allocation.pk}),
            {'quantity': 60},
            format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.data['quantity'] == 60

    def test_zero_removes(self, manager_client, farm):
        allocation = BatchAllocationFactory(batch=BatchFactory(farm=farm), quantity=40)
        response = manager_client.patch(
            reverse('api-v1:allocations:allocation-detail', kwargs={'pk': allocation.pk}),
            {'quantity': 0},
            format='json',
        )
        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not BatchAllocation.objects.filter(pk=allocation.pk).exists()

    def test_put_not_allowed(self, manager_client, farm):
        allocation = BatchAllocationFactory(batch=BatchFactory(farm=farm), quantity=40)
        response = manager_client.put(
            reverse('api-v1:allocations:allocation-detail', kwargs={'pk': allocation.pk}),
            {'quantity': 10},
            format='json',
        )
        assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED

    def test_malformed_id_not_found(self, manager_client):
        response = manager_client.patch('/api/v1/allocations/not-a-uuid/', {'quantity': 5}, format='json')
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestTransferEndpoint:
    def test_transfer(self, manager_client, farm):
        batch = BatchFactory(farm=farm, original_count=1000)
        house_a = HouseFactory(farm=farm, capacity=None)
        house_b = HouseFactory(farm=farm, capacity=200)
        BatchAllocationFactory(batch=batch, house=house_a, quantity=300)

        response = manager_client.post(
            reverse('api-v1:allocations:allocation-transfer'),
            {
                'batch': str(batch.pk),
                'from_house': str(house_a.pk),
                'to_house': str(house_b.pk),
                'quantity': 100,
            },
            format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.data['source']['quantity'] == 200
        assert response.data['destination']['quantity'] == 100
        assert response.data['source_removed'] is False

    def test_transfer_to_full_house(self, manager_client, farm):
        batch = BatchFactory(farm=farm, original_count=1000)
        house_a = HouseFactory(farm=farm, capacity=None)
        house_b = HouseFactory(farm=farm, capacity=50)
        BatchAllocationFactory(batch=batch, house=house_a, quantity=300)

        response = manager_client.post(
            reverse('api-v1:allocations:allocation-transfer'),
            {
                'batch': str(batch.pk),
                'from_house': str(house_a.pk),
                'to_house': str(house_b.pk),
                'quantity': 51,
            },
            format='json',
        )
        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['code'] == 'CAPACITY_EXCEEDED'

    def test_same_house_rejected(self, manager_client, farm):
        batch = BatchFactory(farm=farm)
        house = HouseFactory(farm=farm)
        response = manager_client.post(
            reverse('api-v1:allocations:allocation-transfer'),
            {'batch': str(batch.pk), 'from_house': str(house.pk), 'to_house': str(house.pk), 'quantity': 1},
            format='json',
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

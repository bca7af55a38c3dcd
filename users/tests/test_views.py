"""
Users — API Integration Tests

End-to-end tests for auth endpoints and farm staff management.

@file users/tests/test_views.py
"""

import pytest
from django.urls import reverse
from rest_framework import status

from core.models import AuditLog
from tests.factories import OwnerFactory, UserFactory, WorkerFactory
from users.models import User

pytestmark = pytest.mark.django_db


class TestRegisterEndpoint:
    def test_register_creates_farm_and_returns_tokens(self, api_client):
        response = api_client.post(
            reverse('api-v1:auth:register'),
            {
                'email': 'new-owner@farm.test',
                'password': 'Register2026!',
                'first_name': 'Kofi',
                'farm_name': 'Green Acres',
            },
            format='json',
        )
        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data['success'] is True
        assert 'access' in data['data']
        assert data['data']['user']['role'] == 'OWNER'
        assert data['data']['user']['farm_name'] == 'Green Acres'

    def test_register_duplicate_email(self, api_client):
        UserFactory(email='dup@farm.test')
        response = api_client.post(
            reverse('api-v1:auth:register'),
            {'email': 'dup@farm.test', 'password': 'Register2026!', 'first_name': 'K'},
            format='json',
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestLoginEndpoint:
    def test_login_success(self, api_client):
        user = OwnerFactory(email='login@farm.test', password='Login2026!!')
        response = api_client.post(
            reverse('api-v1:auth:login'),
            {'email': 'login@farm.test', 'password': 'Login2026!!'},
            format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data['success'] is True
        assert 'access' in data['data']
        assert 'refresh' in data['data']
        assert AuditLog.objects.filter(actor=user, action='LOGIN').exists()

    def test_login_wrong_password(self, api_client):
        UserFactory(email='wrong@farm.test', password='Login2026!!')
        response = api_client.post(
            reverse('api-v1:auth:login'),
            {'email': 'wrong@farm.test', 'password': 'wrong'},
            format='json',
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_login_suspended_user(self, api_client):
        UserFactory(
            email='suspended@farm.test', password='Login2026!!',
            status=User.StatusChoices.SUSPENDED,
        )
        response = api_client.post(
            reverse('api-v1:auth:login'),
            {'email': 'suspended@farm.test', 'password': 'Login2026!!'},
            format='json',
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestMeEndpoint:
    def test_me(self, worker_client, worker):
        response = worker_client.get(reverse('api-v1:auth:me'))
        assert response.status_code == status.HTTP_200_OK
        assert response.json()['data']['email'] == worker.email

    def test_me_unauthenticated(self, api_client):
        response = api_client.get(reverse('api-v1:auth:me'))
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestStaffEndpoints:
    def test_list_only_own_farm(self, worker_client, owner, worker):
        WorkerFactory()
        response = worker_client.get(reverse('api-v1:users:user-list'))
        assert response.status_code == status.HTTP_200_OK
        emails = {row['email'] for row in response.data['results']}
        assert emails == {owner.email, worker.email}

    def test_owner_adds_staff(self, owner_client, owner):
        response = owner_client.post(
            reverse('api-v1:users:user-list'),
            {'email': 'hand@farm.test', 'password': 'Staff2026!!', 'role': 'MANAGER'},
            format='json',
        )
        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['role'] == 'MANAGER'
        assert str(response.data['farm']) == str(owner.farm_id)

    def test_worker_cannot_add_staff(self, worker_client):
        response = worker_client.post(
            reverse('api-v1:users:user-list'),
            {'email': 'hand@farm.test', 'password': 'Staff2026!!'},
            format='json',
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_user_without_farm_rejected(self, admin_client):
        response = admin_client.get(reverse('api-v1:users:user-list'))
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert 'does not belong to a farm' in str(response.data['errors'])

    def test_change_status(self, owner_client, worker):
        response = owner_client.post(
            reverse('api-v1:users:user-change-status', kwargs={'pk': worker.pk}),
            {'status': 'SUSPENDED', 'reason': 'Seasonal'},
            format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        worker.refresh_from_db()
        assert worker.status == User.StatusChoices.SUSPENDED

    def test_remove_staff(self, owner_client, worker):
        response = owner_client.delete(
            reverse('api-v1:users:user-detail', kwargs={'pk': worker.pk}),
        )
        assert response.status_code == status.HTTP_204_NO_CONTENT
        worker.refresh_from_db()
        assert worker.is_deleted is True

    def test_staff_on_other_farm_not_found(self, owner_client):
        stranger = WorkerFactory()
        response = owner_client.delete(
            reverse('api-v1:users:user-detail', kwargs={'pk': stranger.pk}),
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND

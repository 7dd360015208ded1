"""
Tests for registration, login, profile and team management
"""
import tempfile

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from apps.activity.models import ActivityEntry
from apps.auth_app.models import User
from apps.common.testing import make_task, make_user

REGISTER_PAYLOAD = {
    'name': 'Meera Shah',
    'email': 'meera@example.com',
    'password': 'secret123',
    'gender': 'Female',
    'office_location': 'Ahmedabad',
}


class UserModelTests(TestCase):

    def test_role_is_canonicalized_on_save(self):
        user = make_user(role='Owner')
        self.assertEqual(user.role, 'super_admin')
        self.assertEqual(user.role_label, 'Super Admin')

    def test_blank_role_falls_back_to_member(self):
        user = make_user(role='')
        self.assertEqual(user.role, 'member')

    def test_create_superuser(self):
        user = User.objects.create_superuser(email='root@example.com', password='x', name='Root')
        self.assertTrue(user.is_staff)
        self.assertEqual(user.role, 'super_admin')


class RegistrationTests(TestCase):

    def setUp(self):
        self.client = APIClient()

    def test_register_member_returns_token(self):
        response = self.client.post('/api/auth/register', REGISTER_PAYLOAD, format='json')

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['role'], 'member')
        self.assertIn('token', response.data)
        self.assertFalse(response.data['must_change_password'])

    def test_office_location_is_trimmed(self):
        payload = {**REGISTER_PAYLOAD, 'office_location': 'Gift City '}
        response = self.client.post('/api/auth/register/', payload, format='json')
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['office_location'], 'Gift City')

    def test_duplicate_email_is_rejected(self):
        make_user(email='meera@example.com')
        response = self.client.post('/api/auth/register', REGISTER_PAYLOAD, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['message'], 'User already exists')

    def test_profile_fields_are_required(self):
        payload = {key: value for key, value in REGISTER_PAYLOAD.items() if key != 'gender'}
        response = self.client.post('/api/auth/register', payload, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['message'], 'Gender and office location are required')

    def test_invite_token_grants_privileged_role(self):
        payload = {**REGISTER_PAYLOAD, 'admin_invite_token': 'test-invite-token', 'privileged_role': 'owner'}
        response = self.client.post('/api/auth/register', payload, format='json')
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['role'], 'super_admin')

    def test_wrong_invite_token(self):
        payload = {**REGISTER_PAYLOAD, 'admin_invite_token': 'nope'}
        response = self.client.post('/api/auth/register', payload, format='json')
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data['message'], 'Invalid admin invite token')

    def test_privileged_role_without_token(self):
        payload = {**REGISTER_PAYLOAD, 'privileged_role': 'admin'}
        response = self.client.post('/api/auth/register', payload, format='json')
        self.assertEqual(response.status_code, 400)


class LoginAndProfileTests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.user = make_user(email='ravi@example.com', password='secret123', name='Ravi')

    def test_login_is_case_insensitive_on_email(self):
        response = self.client.post(
            '/api/auth/login', {'email': 'RAVI@example.com', 'password': 'secret123'}, format='json',
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['id'], str(self.user.pk))

        token = response.data['token']
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
        profile = self.client.get('/api/auth/profile')
        self.assertEqual(profile.status_code, 200)
        self.assertEqual(profile.data['email'], 'ravi@example.com')

    def test_bad_credentials(self):
        response = self.client.post(
            '/api/auth/login', {'email': 'ravi@example.com', 'password': 'wrong'}, format='json',
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.data['message'], 'Invalid email or password')

    def test_invalid_token(self):
        self.client.credentials(HTTP_AUTHORIZATION='Bearer not-a-token')
        response = self.client.get('/api/auth/profile')
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.data['message'], 'Not authorized, token failed')

    def test_update_profile(self):
        other = make_user(email='taken@example.com')
        self.client.force_authenticate(user=self.user)

        response = self.client.put('/api/auth/profile', {'email': other.email}, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['message'], 'Email is already in use')

        response = self.client.put(
            '/api/auth/profile',
            {'name': 'Ravi Patel', 'birthdate': '1990-02-03', 'password': 'newpass123'},
            format='json',
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['message'], 'Profile updated successfully')
        self.user.refresh_from_db()
        self.assertEqual(self.user.name, 'Ravi Patel')
        self.assertEqual(str(self.user.birthdate), '1990-02-03')
        self.assertTrue(self.user.check_password('newpass123'))

    def test_invalid_office_location(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.put('/api/auth/profile', {'office_location': 'Mumbai'}, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['message'], 'Office location must be Ahmedabad or Gift City')

    def test_reset_with_admin_token(self):
        response = self.client.post(
            '/api/auth/reset-password/admin-token',
            {'email': 'ravi@example.com', 'admin_invite_token': 'test-invite-token', 'new_password': 'fresh123'},
            format='json',
        )
        self.assertEqual(response.status_code, 200)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('fresh123'))


class UserManagementTests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.super_admin = make_user(role='super_admin', name='Super')
        self.admin = make_user(role='admin', name='Admin')
        self.member = make_user(role='member', name='Member')

    def test_list_members_with_task_counts(self):
        make_task(assignees=[self.member], status='Completed')
        make_task(assignees=[self.member], status='Pending')
        self.client.force_authenticate(user=self.admin)

        response = self.client.get('/api/users')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data), 1)
        row = response.data[0]
        self.assertEqual(row['pending_tasks'], 1)
        self.assertEqual(row['completed_tasks'], 1)
        self.assertEqual(row['in_progress_tasks'], 0)

    def test_members_cannot_list_users(self):
        self.client.force_authenticate(user=self.member)
        self.assertEqual(self.client.get('/api/users').status_code, 403)

    def test_admin_creates_client_but_not_admin(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(
            '/api/users',
            {'name': 'Client Co', 'email': 'client@example.com', 'password': 'x12345', 'role': 'client'},
            format='json',
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['role'], 'client')
        self.assertTrue(response.data['must_change_password'])
        self.assertTrue(ActivityEntry.objects.filter(entity_type='client', action='created').exists())

        response = self.client.post(
            '/api/users',
            {'name': 'Wannabe', 'email': 'wannabe@example.com', 'password': 'x12345', 'role': 'admin'},
            format='json',
        )
        self.assertEqual(response.data['role'], 'member')

    def test_super_admin_creates_admin(self):
        self.client.force_authenticate(user=self.super_admin)
        response = self.client.post(
            '/api/users',
            {'name': 'New Admin', 'email': 'na@example.com', 'password': 'x12345', 'role': 'admin'},
            format='json',
        )
        self.assertEqual(response.data['role'], 'admin')

    def test_delete_rules(self):
        self.client.force_authenticate(user=self.admin)
        self.assertEqual(self.client.delete(f'/api/users/{self.admin.pk}').status_code, 400)
        self.assertEqual(self.client.delete(f'/api/users/{self.super_admin.pk}').status_code, 403)

        task = make_task(assignees=[self.member])
        response = self.client.delete(f'/api/users/{self.member.pk}')
        self.assertEqual(response.status_code, 200)
        self.assertFalse(User.objects.filter(pk=self.member.pk).exists())
        self.assertEqual(task.assigned_to.count(), 0)

    def test_retrieve_unknown_user(self):
        self.client.force_authenticate(user=self.member)
        self.assertEqual(self.client.get('/api/users/not-a-uuid').status_code, 404)
        self.assertEqual(self.client.get(f'/api/users/{self.admin.pk}').status_code, 200)

    def test_admin_reset_forces_password_change(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.put(
            f'/api/users/{self.member.pk}/password', {'new_password': 'temp1234'}, format='json',
        )
        self.assertEqual(response.status_code, 200)
        self.member.refresh_from_db()
        self.assertTrue(self.member.must_change_password)

        response = self.client.put(
            f'/api/users/{self.super_admin.pk}/password', {'new_password': 'temp1234'}, format='json',
        )
        self.assertEqual(response.status_code, 403)

    def test_change_own_password(self):
        self.member.set_password('old12345')
        self.member.must_change_password = True
        self.member.save()
        self.client.force_authenticate(user=self.member)

        response = self.client.put(
            '/api/users/profile/password',
            {'current_password': 'wrong', 'new_password': 'new12345'},
            format='json',
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['message'], 'Current password is incorrect')

        response = self.client.put(
            '/api/users/profile/password',
            {'current_password': 'old12345', 'new_password': 'new12345'},
            format='json',
        )
        self.assertEqual(response.status_code, 200)
        self.member.refresh_from_db()
        self.assertFalse(self.member.must_change_password)


@override_settings(MEDIA_ROOT=tempfile.mkdtemp())
class ProfilePhotoTests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.user = make_user()
        self.client.force_authenticate(user=self.user)

    def test_upload_and_remove_photo(self):
        image = SimpleUploadedFile('me.png', b'\x89PNG\r\n\x1a\n', content_type='image/png')
        response = self.client.put('/api/users/profile/photo', {'profile_image': image}, format='multipart')

        self.assertEqual(response.status_code, 200)
        self.assertIn('profile_images/', response.data['profile_image_url'])

        response = self.client.delete('/api/users/profile/photo')
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.data['user']['profile_image_url'])

    def test_non_image_is_rejected(self):
        upload = SimpleUploadedFile('notes.txt', b'hello', content_type='text/plain')
        response = self.client.put('/api/users/profile/photo', {'profile_image': upload}, format='multipart')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['message'], 'Only image files are allowed')

"""
Tests for shared helpers: roles, payload utils, uploads and the error envelope
"""
from datetime import date, datetime

from django.test import SimpleTestCase, TestCase, override_settings
from django.utils import timezone
from rest_framework import exceptions
from rest_framework.test import APIClient

from apps.common import roles
from apps.common.exceptions import InvalidPayload, NotFound, api_exception_handler
from apps.common.testing import make_user, pdf_upload
from apps.common.uploads import sanitize_filename, validate_document_upload, validate_profile_image
from apps.common.utils import (
    canonical_uuid,
    dedupe_ids,
    normalize_id,
    normalize_tags,
    parse_date_value,
    parse_datetime_value,
    round_half_up,
    to_float,
)


class RoleTests(SimpleTestCase):

    def test_matches_role_accepts_suffixed_variants(self):
        self.assertTrue(roles.matches_role('admin', 'admin'))
        self.assertTrue(roles.matches_role('Admin-Billing', 'admin'))
        self.assertTrue(roles.matches_role('member_intern', 'member'))
        self.assertFalse(roles.matches_role('administrator', 'admin'))
        self.assertFalse(roles.matches_role('', 'admin'))
        self.assertFalse(roles.matches_role(None, 'admin'))

    def test_owner_is_legacy_super_admin(self):
        self.assertTrue(roles.is_super_admin('owner'))
        self.assertEqual(roles.canonical_role('Owner'), roles.SUPER_ADMIN)
        self.assertEqual(roles.get_role_label('owner'), 'Super Admin')

    def test_privileged_access(self):
        self.assertTrue(roles.has_privileged_access('super_admin'))
        self.assertTrue(roles.has_privileged_access('admin'))
        self.assertFalse(roles.has_privileged_access('member'))
        self.assertFalse(roles.has_privileged_access('client'))


class UtilsTests(SimpleTestCase):

    def test_normalize_id_handles_objects_and_blanks(self):
        self.assertEqual(normalize_id({'_id': ' abc '}), 'abc')
        self.assertEqual(normalize_id({'id': 7}), '7')
        self.assertIsNone(normalize_id('   '))
        self.assertIsNone(normalize_id(None))

    def test_dedupe_ids_keeps_first_seen_order(self):
        self.assertEqual(dedupe_ids(['b', 'a', {'id': 'b'}, '', None]), ['b', 'a'])

    def test_uuid_ids_are_lower_cased(self):
        upper = 'A1B2C3D4-E5F6-4711-8899-AABBCCDDEEFF'
        self.assertEqual(canonical_uuid(upper), upper.lower())
        self.assertEqual(canonical_uuid(' a1b2c3d4e5f647118899aabbccddeeff '), upper.lower())
        self.assertIsNone(canonical_uuid('abc'))
        self.assertIsNone(canonical_uuid(None))
        self.assertEqual(normalize_id({'id': upper}), upper.lower())
        self.assertEqual(dedupe_ids([upper, upper.lower()]), [upper.lower()])

    def test_normalize_tags(self):
        self.assertEqual(normalize_tags('urgent, billing,urgent,'), ['urgent', 'billing'])
        self.assertEqual(normalize_tags(['a', ' a ', 'b']), ['a', 'b'])
        self.assertEqual(normalize_tags(42), [])

    def test_round_half_up(self):
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(66.66), 67)
        self.assertEqual(round_half_up(33.33), 33)

    def test_to_float_rejects_non_finite(self):
        self.assertEqual(to_float('12.5'), 12.5)
        self.assertEqual(to_float('nan'), 0.0)
        self.assertEqual(to_float('inf'), 0.0)
        self.assertEqual(to_float(None), 0.0)

    def test_parse_dates(self):
        self.assertEqual(parse_date_value('2024-03-05'), date(2024, 3, 5))
        self.assertEqual(parse_date_value('2024-03-05T10:00:00Z'), date(2024, 3, 5))
        self.assertIsNone(parse_date_value('not a date'))
        parsed = parse_datetime_value('2024-03-05')
        self.assertTrue(timezone.is_aware(parsed))
        self.assertEqual(parsed.hour, 0)
        self.assertTrue(timezone.is_aware(parse_datetime_value(datetime(2024, 1, 1, 9))))


class UploadValidationTests(SimpleTestCase):

    def test_sanitize_filename(self):
        self.assertEqual(sanitize_filename('my brief (v2).pdf'), 'my_brief__v2_.pdf')

    def test_document_upload_rejects_unknown_types(self):
        upload = pdf_upload()
        self.assertIs(validate_document_upload(upload), upload)

        upload.content_type = 'application/zip'
        with self.assertRaisesMessage(InvalidPayload, 'Unsupported file type'):
            validate_document_upload(upload)

        with self.assertRaisesMessage(InvalidPayload, 'No file uploaded'):
            validate_document_upload(None)

    @override_settings(MAX_DOCUMENT_UPLOAD_SIZE=4)
    def test_document_upload_size_limit(self):
        with self.assertRaisesMessage(InvalidPayload, 'File is too large'):
            validate_document_upload(pdf_upload())

    def test_profile_image_must_be_an_image(self):
        with self.assertRaisesMessage(InvalidPayload, 'Only image files are allowed'):
            validate_profile_image(pdf_upload())


class ExceptionHandlerTests(SimpleTestCase):

    def test_http_error_envelope(self):
        response = api_exception_handler(NotFound('Matter not found'), {})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data, {'message': 'Matter not found'})

    def test_validation_error_keeps_first_message_and_details(self):
        exc = exceptions.ValidationError({'name': ['Name, email and password are required']})
        response = api_exception_handler(exc, {})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['message'], 'Name, email and password are required')
        self.assertIn('name', response.data['details'])

    def test_missing_token_message(self):
        response = api_exception_handler(exceptions.NotAuthenticated(), {})
        self.assertEqual(response.data['message'], 'Not authorized, no token')

    def test_throttled_envelope(self):
        response = api_exception_handler(exceptions.Throttled(wait=5), {})
        self.assertEqual(response.status_code, 429)
        self.assertEqual(response.data, {'message': 'Too many requests, please try again later.'})
        self.assertEqual(response['Retry-After'], '5')

    def test_unhandled_error_is_a_500(self):
        response = api_exception_handler(RuntimeError('boom'), {})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data['message'], 'Server error')


class RequestPipelineTests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(user=make_user())

    def test_unknown_api_route_returns_json_404(self):
        response = self.client.get('/api/nothing-here')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['message'], 'Cannot GET /api/nothing-here')

    def test_correlation_and_security_headers(self):
        response = self.client.get('/api/tasks', HTTP_X_CORRELATION_ID='req-123')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response['X-Correlation-ID'], 'req-123')
        self.assertEqual(response['X-DNS-Prefetch-Control'], 'off')

    def test_anonymous_request_is_rejected(self):
        response = APIClient().get('/api/matters')
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()['message'], 'Not authorized, no token')

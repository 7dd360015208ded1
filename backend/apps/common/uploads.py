"""
Upload validation and storage naming for documents and profile photos
"""
import re
import time

from django.conf import settings

from apps.common.exceptions import InvalidPayload

DOCUMENT_CONTENT_TYPES = frozenset([
    'application/pdf',
    'application/msword',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    'application/vnd.ms-excel',
    'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    'application/vnd.ms-powerpoint',
    'application/vnd.openxmlformats-officedocument.presentationml.presentation',
    'text/plain',
])

_UNSAFE_CHARS = re.compile(r'[^a-zA-Z0-9._-]')


def sanitize_filename(name):
    return _UNSAFE_CHARS.sub('_', name or 'file')


def timestamped_name(name):
    """``<epoch millis>-<sanitized name>``, unique enough per upload."""
    return f'{int(time.time() * 1000)}-{sanitize_filename(name)}'


def document_upload_to(instance, filename):
    return f'documents/{timestamped_name(filename)}'


def profile_image_upload_to(instance, filename):
    return f'profile_images/{timestamped_name(filename)}'


def _is_image(content_type):
    return (content_type or '').startswith('image/')


def validate_document_upload(upload):
    if upload is None:
        raise InvalidPayload('No file uploaded')
    content_type = getattr(upload, 'content_type', '') or ''
    if content_type not in DOCUMENT_CONTENT_TYPES and not _is_image(content_type):
        raise InvalidPayload(
            'Unsupported file type. Upload a PDF, Word, Excel, PowerPoint, text or image file.'
        )
    max_size = settings.MAX_DOCUMENT_UPLOAD_SIZE
    if upload.size > max_size:
        raise InvalidPayload(f'File is too large. Maximum size is {max_size // (1024 * 1024)}MB.')
    return upload


def validate_profile_image(upload):
    if upload is None:
        raise InvalidPayload('No image uploaded')
    if not _is_image(getattr(upload, 'content_type', '')):
        raise InvalidPayload('Only image files are allowed')
    max_size = settings.MAX_PROFILE_IMAGE_SIZE
    if upload.size > max_size:
        raise InvalidPayload(f'Image is too large. Maximum size is {max_size // (1024 * 1024)}MB.')
    return upload


def absolute_file_url(request, field_file):
    if not field_file:
        return ''
    url = field_file.url
    return request.build_absolute_uri(url) if request is not None else url

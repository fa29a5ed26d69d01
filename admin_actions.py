"""docstring admin_actions.py: validated admin mutations.

Each action writes through GalleryDb, then triggers the image pipeline job.
Store errors come back as {'status': 'error', 'message': ...}; pipeline errors
are logged by the job and never change an action's result."""
import logging

from gallery_db import ACTIVE, STALE, GalleryError, ValidationError

WRITES_DISABLED = 'Writable actions are only available in development mode.'


def success(message):
    return {'status': 'success', 'message': message}


def error(message):
    return {'status': 'error', 'message': message}


def parse_id(value):
    """Positive integer from a form/JSON value, or None."""
    if isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def parse_links(value):
    """Links arrive either as a list or as newline-separated text."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split('\n')
    return [str(link).strip() for link in value if str(link).strip()]


def parse_status(value):
    return STALE if value == STALE else ACTIVE


def optional_text(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def parse_hidden(value):
    if isinstance(value, str):
        return value.strip().lower() in ('on', 'true', '1', 'yes')
    return bool(value)


class AdminActions:
    def __init__(self, db, pipeline_job=None, allow_writes=True, logger=None):
        self.db = db
        self.pipeline_job = pipeline_job
        self.allow_writes = allow_writes
        self.logger = logger or logging.getLogger(__name__)

    def _after_write(self):
        """Regenerate assets; the job logs and records its own failures."""
        if self.pipeline_job is None:
            return
        try:
            self.pipeline_job.trigger()
        except Exception as e:
            self.logger.exception(f"[image-pipeline] could not be triggered: {e}")

    def _run(self, write, message, fallback):
        if not self.allow_writes:
            return error(WRITES_DISABLED)
        try:
            result = write()
        except GalleryError as e:
            self.logger.warning(f"{fallback} {e}")
            return error(str(e) or fallback)
        self._after_write()
        return success(message(result) if callable(message) else message)

    def add_character(self, form):
        name = str(form.get('name') or '').strip()
        if not name:
            return error('Character name is required.')
        status = parse_status(form.get('status'))

        return self._run(
            lambda: self.db.create_character(name, status),
            f'Character "{name}" created.',
            'Failed to create character. Please try again.',
        )

    def rename_character(self, payload):
        character_id = parse_id(payload.get('id'))
        if character_id is None:
            return error('Invalid character identifier.')
        name = str(payload.get('name') or '').strip()
        if not name:
            return error('Character name is required.')
        status = payload.get('status')
        if status not in (ACTIVE, STALE):
            return error('Character status must be "active" or "stale".')

        return self._run(
            lambda: self.db.update_character(character_id, name, status),
            f'Character "{name}" updated.',
            'Failed to update character. Please try again.',
        )

    def delete_character(self, character_id):
        character_id = parse_id(character_id)
        if character_id is None:
            return error('Invalid character identifier.')

        return self._run(
            lambda: self.db.delete_character(character_id),
            'Character deleted.',
            'Failed to delete character.',
        )

    def save_character_order(self, payload):
        """reindex(active, stale) -> {'status': 'ok'} | {'status': 'error', 'message'}"""
        if not isinstance(payload, dict):
            return error('Invalid character order payload.')
        active = payload.get('active')
        stale = payload.get('stale')

        result = self._run(
            lambda: self.db.reindex_characters(active, stale),
            'Character order updated.',
            'Failed to update character order.',
        )
        if result['status'] == 'success':
            result['status'] = 'ok'
        return result

    def _commission_fields(self, form):
        character_id = parse_id(form.get('character_id'))
        if character_id is None:
            raise ValidationError('Character selection is required.')
        file_name = str(form.get('file_name') or '').strip()
        if not file_name:
            raise ValidationError('File name is required.')
        return {
            'character_id': character_id,
            'file_name': file_name,
            'links': parse_links(form.get('links')),
            'design': optional_text(form.get('design')),
            'description': optional_text(form.get('description')),
            'hidden': parse_hidden(form.get('hidden')),
        }

    def add_commission(self, form):
        try:
            fields = self._commission_fields(form)
        except ValidationError as e:
            return error(str(e))

        return self._run(
            lambda: self.db.create_commission(**fields),
            lambda result: f'Commission "{fields["file_name"]}" added to {result[1]}.',
            'Failed to add commission. Please try again.',
        )

    def update_commission(self, form):
        commission_id = parse_id(form.get('id'))
        if commission_id is None:
            return error('Invalid commission identifier.')
        try:
            fields = self._commission_fields(form)
        except ValidationError as e:
            return error(str(e))

        return self._run(
            lambda: self.db.update_commission(commission_id, **fields),
            f'Commission "{fields["file_name"]}" updated.',
            'Failed to update commission. Please try again.',
        )

    def delete_commission(self, commission_id):
        commission_id = parse_id(commission_id)
        if commission_id is None:
            return error('Invalid commission identifier.')

        return self._run(
            lambda: self.db.delete_commission(commission_id),
            'Commission deleted.',
            'Failed to delete commission.',
        )

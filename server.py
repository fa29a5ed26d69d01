#!/usr/bin/env python3

import logging
from functools import wraps

from bottle import Bottle, request, response, abort

import settings
from admin_actions import WRITES_DISABLED, AdminActions
from assetgen.image_converter import ImageConverter
from assetgen.job import create_job
from gallery_db import DatabaseError, GalleryDb, NotFoundError

app = application = Bottle()

level = logging.getLevelName(settings.LOG_LEVEL)
logging.basicConfig(level=level, format='%(asctime)s [%(levelname)s] %(name)s: %(message)s')
logger = logging.getLogger('server')

_state = {}


def log(msg):
    logger.debug(msg)


def get_gallery_db():
    if 'db' not in _state:
        _state['db'] = GalleryDb(settings.DATABASE_PATH, settings.BUSY_TIMEOUT_MS)
    return _state['db']


def get_pipeline_job():
    if 'job' not in _state:
        _state['job'] = create_job(
            settings.IMAGES_DIR,
            derivative_dirname=settings.WEBP_DIRNAME,
            background=settings.PIPELINE_BACKGROUND,
            max_workers=settings.PIPELINE_WORKERS,
            converter=ImageConverter(
                jpeg_quality=settings.JPEG_QUALITY,
                webp_quality=settings.WEBP_QUALITY,
            ),
        )
    return _state['job']


def get_admin_actions():
    if 'actions' not in _state:
        _state['actions'] = AdminActions(
            get_gallery_db(),
            pipeline_job=get_pipeline_job(),
            allow_writes=settings.ALLOW_WRITES,
        )
    return _state['actions']


def configure(db=None, pipeline_job=None, allow_writes=None):
    """Swap collaborators (used by tests and embedding scripts)."""
    _state.clear()
    if db is not None:
        _state['db'] = db
    if pipeline_job is not None:
        _state['job'] = pipeline_job
    if db is not None or pipeline_job is not None or allow_writes is not None:
        _state['actions'] = AdminActions(
            get_gallery_db(),
            pipeline_job=_state.get('job'),
            allow_writes=settings.ALLOW_WRITES if allow_writes is None else allow_writes,
        )


def json_body():
    """Request payload from a JSON body, falling back to form fields."""
    try:
        data = request.json
    except ValueError:
        abort(400, 'Malformed JSON body')
    if data is None:
        data = dict(request.forms.decode())
    return data


def action_result(func):
    """Decorate an action view so error results carry HTTP 400."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        result = func(*args, **kwargs)
        if result.get('status') == 'error':
            response.status = 400
        return result
    return wrapper


@app.route('/admin/data')
def admin_data():
    try:
        return get_gallery_db().get_admin_data()
    except DatabaseError as e:
        abort(500, str(e))


@app.route('/characters')
def character_records():
    try:
        return {'characters': get_gallery_db().get_character_records()}
    except DatabaseError as e:
        abort(500, str(e))


@app.route('/characters/<character_id:int>')
def character(character_id):
    try:
        return get_gallery_db().get_character(character_id)
    except NotFoundError as e:
        abort(404, str(e))


@app.route('/admin/characters', method='POST')
@action_result
def add_character():
    return get_admin_actions().add_character(json_body())


@app.route('/admin/characters/order', method='POST')
@action_result
def save_character_order():
    return get_admin_actions().save_character_order(json_body())


@app.route('/admin/characters/<character_id:int>', method='POST')
@action_result
def rename_character(character_id):
    payload = dict(json_body())
    payload['id'] = character_id
    return get_admin_actions().rename_character(payload)


@app.route('/admin/characters/<character_id:int>/delete', method='POST')
@action_result
def delete_character(character_id):
    return get_admin_actions().delete_character(character_id)


@app.route('/admin/commissions', method='POST')
@action_result
def add_commission():
    return get_admin_actions().add_commission(json_body())


@app.route('/admin/commissions/<commission_id:int>', method='POST')
@action_result
def update_commission(commission_id):
    payload = dict(json_body())
    payload['id'] = commission_id
    return get_admin_actions().update_commission(payload)


@app.route('/admin/commissions/<commission_id:int>/delete', method='POST')
@action_result
def delete_commission(commission_id):
    return get_admin_actions().delete_commission(commission_id)


@app.route('/admin/pipeline')
def pipeline_status():
    return get_pipeline_job().status()


@app.route('/admin/pipeline/run', method='POST')
def pipeline_run():
    if not get_admin_actions().allow_writes:
        response.status = 403
        return {'status': 'error', 'message': WRITES_DISABLED}
    get_pipeline_job().trigger()
    return get_pipeline_job().status()


@app.route('/')
def main_page():
    log("Hit root")
    response.content_type = 'text/plain; charset=utf-8'
    return 'Commission gallery admin'


if __name__ == '__main__':
    from bottle import run
    log("Starting up....")
    get_gallery_db().create_tables()
    log("running server...")

    run(app=application,
        host=settings.HOST,
        port=settings.PORT,
        server=settings.SERVER,
        debug=settings.DEBUG_APP,
        reloader=settings.DEBUG_APP
    )

    log("Exiting.")

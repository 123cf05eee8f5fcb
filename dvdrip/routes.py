"""
dvdrip Web Routes
"""

from flask import Blueprint, current_app, jsonify, request

from . import activity
from . import drives
from . import storage
from .errors import WorkflowError
from .ripper import RipJob, parse_season_disc, sanitize_folder_name, is_usable_folder_name

main = Blueprint('main', __name__)


def _runner():
    return current_app.extensions['dvdrip_runner']


def _storage_path() -> str:
    return current_app.config['RIP_CONFIG']['paths']['storage']


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


@main.route('/api/devices')
def api_devices():
    """List optical drives"""
    return jsonify({'devices': drives.find_optical_devices()})


@main.route('/api/categories', methods=['GET'])
def api_categories():
    """List category folders under the storage path"""
    return jsonify({'categories': storage.list_categories(_storage_path())})


@main.route('/api/categories', methods=['POST'])
def api_category_create():
    """Create a category folder"""
    name = str(_json_body().get('name', '')).strip()
    if not name:
        return jsonify({'error': 'Category name cannot be empty'}), 400

    try:
        storage.create_category(_storage_path(), name)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except OSError as e:
        return jsonify({'error': f'Failed to create category: {e}'}), 500

    activity.log_info(f"Category created: {name}")
    return jsonify({'status': 'created', 'name': name}), 201


@main.route('/api/categories', methods=['PUT'])
def api_category_rename():
    """Rename a category folder"""
    data = _json_body()
    old_name = str(data.get('oldName', '')).strip()
    new_name = str(data.get('newName', '')).strip()
    if not old_name or not new_name:
        return jsonify({'error': 'Old and new names are required'}), 400

    try:
        storage.rename_category(_storage_path(), old_name, new_name)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except OSError as e:
        return jsonify({'error': f'Failed to rename category: {e}'}), 500

    activity.log_info(f"Category renamed: {old_name} -> {new_name}")
    return jsonify({'status': 'renamed'})


@main.route('/api/categories', methods=['DELETE'])
def api_category_delete():
    """Delete an empty category folder"""
    name = str(_json_body().get('name', '')).strip()
    if not name:
        return jsonify({'error': 'Category name is required'}), 400

    try:
        storage.delete_category(_storage_path(), name)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except OSError as e:
        return jsonify({'error': f'Failed to delete category: {e}'}), 500

    activity.log_info(f"Category deleted: {name}")
    return jsonify({'status': 'deleted'})


@main.route('/api/rip', methods=['POST'])
def api_rip():
    """Queue a rip job. Returns 202 as soon as the job is accepted."""
    data = _json_body()
    device = str(data.get('device', '')).strip()
    media_type = str(data.get('type', 'movie')).strip().lower()

    if media_type == 'tv':
        show = str(data.get('show', '')).strip()
        season_disc = str(data.get('seasonDisc', '')).strip()
        if not device or not show or not season_disc:
            return jsonify({'error': 'Missing required fields: device, show, seasonDisc'}), 400
        try:
            season, disc = parse_season_disc(season_disc)
        except WorkflowError as e:
            return jsonify({'error': e.error.message}), 400
        job = RipJob(device=device, query=show, media_type='tv', season_disc=season_disc,
                     season_number=season, disc_number=disc)
        title = show
    elif media_type == 'movie':
        category = str(data.get('category', '')).strip()
        movie = str(data.get('movie', '')).strip()
        if not device or not category or not movie:
            return jsonify({'error': 'Missing required fields: device, category, movie'}), 400
        try:
            category = storage.validate_category_name(category)
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        if not is_usable_folder_name(sanitize_folder_name(movie)):
            return jsonify({'error': f'Invalid movie name: {movie!r}'}), 400
        job = RipJob(device=device, category=category, movie_name=movie)
        title = movie
    else:
        return jsonify({'error': f'Unknown rip type: {media_type}'}), 400

    if device not in drives.find_optical_devices():
        return jsonify({'error': f'Unknown device: {device}'}), 400

    job_id = _runner().submit(job)
    return jsonify({'status': 'rip started', 'movie': title, 'jobId': job_id}), 202


@main.route('/api/status')
def api_status():
    """Current application status"""
    runner = _runner()
    jobs = runner.list_jobs()
    return jsonify({
        'status': 'running',
        'storagePath': _storage_path(),
        'availableDevices': drives.find_optical_devices(),
        'activeJobs': runner.active_count(),
        'totalJobs': len(jobs),
    })


@main.route('/api/jobs')
def api_jobs():
    """All jobs, oldest first"""
    return jsonify({'jobs': [job.to_dict() for job in _runner().list_jobs()]})


@main.route('/api/jobs/<job_id>', methods=['GET'])
def api_job(job_id):
    job = _runner().get(job_id)
    if job is None:
        return jsonify({'error': 'Job not found'}), 404
    return jsonify(job.to_dict())


@main.route('/api/jobs/<job_id>', methods=['DELETE'])
def api_job_cancel(job_id):
    """Cancel a queued or running job"""
    runner = _runner()
    job = runner.get(job_id)
    if job is None:
        return jsonify({'error': 'Job not found'}), 404
    if not runner.cancel(job_id):
        return jsonify({'error': 'Job already finished'}), 409
    return jsonify({'status': 'cancelling', 'jobId': job_id})


@main.route('/api/activity-log')
def api_activity_log():
    """Get recent activity log entries (newest first)"""
    limit = request.args.get('limit', 100, type=int)
    return jsonify({'log': activity.read_recent(limit)})

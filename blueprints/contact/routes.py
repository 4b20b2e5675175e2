"""
Contact Routes - Contact form submissions and the admin message workflow
"""

from flask import request, jsonify, current_app
from utils import contact as workflow
from utils.decorators import admin_required
from utils.security import check_rate_limit, get_current_identity, get_client_ip
from utils.errors import NotFoundError, ValidationError
from utils.payload import get_json_body
from . import contact_bp


def _acting_admin():
    identity = get_current_identity() or {}
    return identity.get('name') or 'admin'


def _get_or_404(message_id):
    message = workflow.get_contact_message_by_id(message_id)
    if not message:
        raise NotFoundError('Message not found')
    return message


def _result(success, message_id, error):
    message = workflow.get_contact_message_by_id(message_id)
    if not success:
        if message and message['status'] == 'deleted':
            return jsonify({'error': 'Message has been deleted'}), 409
        return jsonify({'error': error}), 500
    return jsonify(message)


@contact_bp.route('', methods=['POST'])
def submit_message():
    """Submit a new contact message (public)"""
    if not check_rate_limit('contact'):
        current_app.logger.warning(f"Contact rate limit exceeded for {get_client_ip()}")
        return jsonify({'error': 'Too many requests. Please try again later.'}), 429

    body = get_json_body(allow_form=True)
    message = workflow.create_contact_message(
        body.get('name'), body.get('email'), body.get('subject'), body.get('message'))

    return jsonify({
        'success': True,
        'message': 'Contact message submitted successfully',
        'id': message['_id']
    })


@contact_bp.route('', methods=['GET'])
@admin_required
def list_messages():
    """All messages, or those with the given status"""
    status = request.args.get('status')
    if status:
        return jsonify(workflow.get_contact_messages_by_status(status))
    return jsonify(workflow.get_all_contact_messages())


@contact_bp.route('/counts')
@admin_required
def message_counts():
    return jsonify(workflow.count_by_status())


@contact_bp.route('/<message_id>', methods=['GET'])
@admin_required
def get_message(message_id):
    return jsonify(_get_or_404(message_id))


@contact_bp.route('/<message_id>', methods=['PATCH'])
@admin_required
def update_message(message_id):
    """Update read/replied flags, priority or add a tag"""
    message = _get_or_404(message_id)
    body = get_json_body()

    read_flag = body.get('read')
    replied_flag = body.get('replied')
    priority = body.get('priority')
    tag = body.get('tag')

    if all(v is None for v in (read_flag, replied_flag, priority, tag)):
        raise ValidationError('Nothing to update')

    # Reject the whole request before the first write
    for name, flag in (('read', read_flag), ('replied', replied_flag)):
        if flag is not None and not isinstance(flag, bool):
            raise ValidationError(f"'{name}' must be a boolean")
    if priority is not None and priority not in workflow.PRIORITIES:
        raise ValidationError(f"Priority must be one of: {', '.join(workflow.PRIORITIES)}")
    if tag is not None and (not isinstance(tag, str) or not tag.strip()):
        raise ValidationError('Tag cannot be empty')

    transitions = read_flag is not None or replied_flag is not None
    if transitions and message['status'] == 'deleted':
        return jsonify({'error': 'Message has been deleted'}), 409

    success = True
    if read_flag is not None:
        success = workflow.mark_as_read(message_id, read_flag, by=_acting_admin()) and success
    if replied_flag is not None:
        success = workflow.mark_as_replied(message_id, replied_flag) and success
    if priority is not None:
        success = workflow.set_priority(message_id, priority) and success
    if tag is not None:
        success = workflow.add_tag(message_id, tag) and success

    return _result(success, message_id, 'Failed to update message')


@contact_bp.route('/<message_id>/reply', methods=['POST'])
@admin_required
def reply_message(message_id):
    _get_or_404(message_id)
    body = get_json_body(allow_form=True)
    success = workflow.reply(message_id, body.get('content'), _acting_admin())
    return _result(success, message_id, 'Failed to reply to message')


@contact_bp.route('/<message_id>/archive', methods=['POST'])
@admin_required
def archive_message(message_id):
    _get_or_404(message_id)
    success = workflow.archive(message_id, by=_acting_admin())
    return _result(success, message_id, 'Failed to archive message')


@contact_bp.route('/<message_id>', methods=['DELETE'])
@admin_required
def delete_message(message_id):
    """Soft delete: the message is kept with status 'deleted'"""
    _get_or_404(message_id)
    if not workflow.soft_delete(message_id, by=_acting_admin()):
        return _result(False, message_id, 'Failed to delete message')
    return jsonify({'success': True, 'message': 'Contact message deleted'})

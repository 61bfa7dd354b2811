from __future__ import annotations
from flask import Blueprint, request
from repairdesk.services.integrations import integrations

chat_bp = Blueprint('chat', __name__)


@chat_bp.post('/chat')
def chat():
    # forwarded untrimmed; the proxy rejects blank input
    data = request.get_json(silent=True) or {}
    message = data.get('message') if isinstance(data, dict) else None
    reply = integrations().chat.chat(message)
    return {'success': True, 'reply': reply}

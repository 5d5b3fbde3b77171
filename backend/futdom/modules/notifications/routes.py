from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request, Response, stream_with_context
import json
import time
from queue import Empty
from ...extensions import db
from ...models.notification import Notification
from ...store import list_notifications as fetch_notifications, mark_notification_read
from .bus import subscribe, unsubscribe
from .delivery import notification_to_dict

bp = Blueprint("notifications", __name__, url_prefix="/notifications")


@bp.get("")
def list_notifications():
    user_id = request.args.get("userId")
    if not user_id:
        return jsonify({"error": "userId required"}), 400
    try:
        uid = int(user_id)
    except (TypeError, ValueError):
        return jsonify({"error": "Invalid userId"}), 400
    default_limit = current_app.config.get("NOTIFICATION_LIST_LIMIT", 20)
    try:
        limit = int(request.args.get("limit", default_limit))
    except (TypeError, ValueError):
        limit = default_limit
    rows = fetch_notifications(uid, limit)
    return jsonify({"notifications": [notification_to_dict(n) for n in rows]})


@bp.patch("/<int:notif_id>/read")
def mark_read(notif_id: int):
    n = db.session.get(Notification, notif_id)
    if not n:
        return jsonify({"error": "Not found"}), 404
    # Optional: require userId match from query for basic safety
    user_id_param = request.args.get("userId")
    if user_id_param:
        try:
            uid = int(user_id_param)
        except (TypeError, ValueError):
            return jsonify({"error": "Invalid userId"}), 400
        if n.user_id != uid:
            return jsonify({"error": "Forbidden"}), 403
    if mark_notification_read(n):
        db.session.commit()
    return jsonify({"notification": notification_to_dict(n)})


@bp.get("/stream")
def stream_notifications():
    """Server-Sent Events stream for a user's notifications.

    Client subscribes with /notifications/stream?userId=<id>
    """
    user_id = request.args.get("userId")
    if not user_id:
        return jsonify({"error": "userId required"}), 400
    try:
        uid = int(user_id)
    except (TypeError, ValueError):
        return jsonify({"error": "Invalid userId"}), 400

    q = subscribe(uid)

    def event_stream():
        try:
            # Initial comment to establish stream
            yield ": connected\n\n"
            while True:
                try:
                    # Keep below gunicorn's timeout to ensure periodic yields
                    evt = q.get(timeout=15)
                except Empty:
                    # Keep-alive
                    yield "event: ping\n" + f"data: {json.dumps({'ts': int(time.time())})}\n\n"
                    continue
                yield "event: notification\n" + f"data: {json.dumps(evt)}\n\n"
        finally:
            unsubscribe(uid, q)

    headers = {
        "Content-Type": "text/event-stream",
        "Cache-Control": "no-cache",
        "Connection": "keep-alive",
        "X-Accel-Buffering": "no",
    }
    return Response(stream_with_context(event_stream()), headers=headers)

"""Per-request logging for the wordlens HTTP API."""

import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Dict

from flask import g, request

# Request bodies can carry whole host pages; only their size is logged
_LARGE_BODY_FIELDS = {'html'}


class RequestLogger:
    def __init__(self, app=None, log_dir: str = "logs"):
        self.log_dir = log_dir
        self.trusted_proxies = ['127.0.0.1', '::1']
        if app:
            self.init_app(app)

    def init_app(self, app):
        os.makedirs(self.log_dir, exist_ok=True)

        request_logger = logging.getLogger('request_logger')
        request_logger.propagate = False
        request_logger.setLevel(logging.DEBUG)

        formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')

        debug_handler = RotatingFileHandler(
            os.path.join(self.log_dir, 'requests.debug.log'),
            maxBytes=10000000,  # 10MB
            backupCount=10
        )
        debug_handler.setLevel(logging.DEBUG)
        debug_handler.setFormatter(formatter)
        debug_handler.addFilter(lambda record: record.levelno == logging.DEBUG)
        request_logger.addHandler(debug_handler)

        info_handler = RotatingFileHandler(
            os.path.join(self.log_dir, 'requests.log'),
            maxBytes=10000000,  # 10MB
            backupCount=10
        )
        info_handler.setLevel(logging.INFO)
        info_handler.setFormatter(formatter)
        request_logger.addHandler(info_handler)

        @app.before_request
        def before_request():
            g.request_start_time = datetime.now(timezone.utc)

        @app.after_request
        def after_request(response):
            start = getattr(g, 'request_start_time', None)
            duration_ms = 0
            if start is not None:
                duration_ms = int((datetime.now(timezone.utc) - start).total_seconds() * 1000)

            info_entry = {
                'timestamp': datetime.now(timezone.utc).isoformat(),
                'method': request.method,
                'path': request.path,
                'status_code': response.status_code,
                'duration_ms': duration_ms,
            }
            request_logger.info(json.dumps(info_entry))

            debug_entry = dict(info_entry)
            debug_entry.update({
                'ip_address': self._client_ip(),
                'user_agent': request.user_agent.string,
                'referer': request.referrer,
            })
            if request.args:
                debug_entry['query_params'] = dict(request.args.items())
            if request.method in ['POST', 'PUT'] and request.is_json:
                body = request.get_json(silent=True)
                if isinstance(body, dict):
                    debug_entry['request_body'] = _summarize_body(body)

            request_logger.debug(json.dumps(debug_entry, ensure_ascii=False))
            return response

    def _client_ip(self) -> str:
        real_ip = request.headers.get('X-Real-IP')
        if real_ip and request.remote_addr in self.trusted_proxies:
            return real_ip
        return request.remote_addr or ''


def _summarize_body(body: Dict[str, Any]) -> Dict[str, Any]:
    summary = {}
    for key, value in body.items():
        if key in _LARGE_BODY_FIELDS and isinstance(value, str):
            summary[key] = f"<{len(value)} chars>"
        else:
            summary[key] = value
    return summary


def get_request_logger(name: str = 'request_logger') -> logging.Logger:
    """Helper function to get the request logger instance."""
    return logging.getLogger(name)

from __future__ import annotations

import os
from typing import Optional

from flask import Flask, jsonify, request

from plugin_serial.config import Config
from plugin_serial.core.controller import SerialPlugin
from plugin_serial.core.errors import Busy, NotConnected, SerialPluginError
from plugin_serial.logging_setup import setup_logging


def _should_start_thread() -> bool:
    # In Flask debug/reload mode, the module is imported twice.
    # Start background threads ONLY in the reloader child process.
    if os.environ.get("WERKZEUG_RUN_MAIN") == "true":
        return True
    # If FLASK_DEBUG is set, Werkzeug will run a reloader -> don't start in parent.
    if os.environ.get("FLASK_DEBUG") in ("1", "true", "True"):
        return False
    return True


def _error(e: SerialPluginError):
    if isinstance(e, NotConnected):
        code = 409
    elif isinstance(e, Busy):
        code = 423
    else:
        code = 500
    return jsonify({"ok": False, "error": e.to_dict()}), code


def _bad_request(message: str):
    return jsonify({"ok": False, "error": {"error_type": "BadRequest", "message": message}}), 400


def _as_bool(v) -> Optional[bool]:
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        return bool(v)
    if isinstance(v, str) and v.strip().lower() in ("1", "true", "on", "high"):
        return True
    if isinstance(v, str) and v.strip().lower() in ("0", "false", "off", "low"):
        return False
    return None


def create_app(plugin: Optional[SerialPlugin] = None, start_watcher: Optional[bool] = None) -> Flask:
    app = Flask(__name__)

    logger = setup_logging(Config.LOG_DIR, level=Config.LOG_LEVEL)
    app.logger.handlers = logger.handlers
    app.logger.setLevel(logger.level)

    # plugin (single instance per process)
    if plugin is None:
        plugin = SerialPlugin.from_config(Config, logger=logger)
    app.extensions["plugin_serial"] = plugin

    if start_watcher is None:
        start_watcher = Config.START_WATCHER and _should_start_thread()
    if start_watcher:
        plugin.start()

    # ---------- ports ----------
    @app.get("/api/ports")
    def api_ports():
        if _as_bool(request.args.get("refresh", "0")):
            try:
                ports = plugin.scan_ports()
            except SerialPluginError as e:
                return _error(e)
        else:
            ports = plugin.list_ports()
        return jsonify({"ok": True, "devices": [p.to_dict() for p in ports]})

    # ---------- connection ----------
    @app.get("/api/connection")
    def api_connection():
        try:
            return jsonify({"ok": True, "port": plugin.get_connection()})
        except SerialPluginError as e:
            return _error(e)

    @app.post("/api/connect")
    def api_connect():
        data = request.get_json(silent=True) or {}
        port = data.get("port")
        if not port or not isinstance(port, str):
            return _bad_request("port must be a non-empty string")
        try:
            status = plugin.connect(port)
        except SerialPluginError as e:
            return _error(e)
        return jsonify({"ok": True, "status": status.value})

    @app.post("/api/disconnect")
    def api_disconnect():
        try:
            status = plugin.disconnect()
        except SerialPluginError as e:
            return _error(e)
        return jsonify({"ok": True, "status": status.value})

    # ---------- I/O ----------
    @app.post("/api/write")
    def api_write():
        data = request.get_json(silent=True) or {}
        content = data.get("content")
        if not isinstance(content, str):
            return _bad_request("content must be a string")
        try:
            return jsonify({"ok": True, "response": plugin.write(content)})
        except SerialPluginError as e:
            return _error(e)

    @app.post("/api/dtr")
    def api_dtr():
        data = request.get_json(silent=True) or {}
        level = _as_bool(data.get("level"))
        if level is None:
            return _bad_request("level must be a boolean")
        try:
            return jsonify({"ok": True, "status": plugin.dtr(level)})
        except SerialPluginError as e:
            return _error(e)

    # ---------- events / status ----------
    @app.get("/api/events")
    def api_events():
        try:
            since = int(request.args.get("since", "0"))
        except ValueError:
            return _bad_request("since must be integer")
        return jsonify({"ok": True, "events": [r.to_dict() for r in plugin.events.since(since)]})

    @app.get("/api/status")
    def api_status():
        try:
            return jsonify({"ok": True, "status": plugin.status()})
        except SerialPluginError as e:
            return _error(e)

    return app

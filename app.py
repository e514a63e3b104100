# app.py

from flask import Flask, jsonify, request

# ---------------- CONFIG / CORE ----------------
from config import (
    ENV,
    HOST,
    PORT,
    SERVICE_NAME,
    SERVICE_VERSION,
    DICTIONARY_MODE,
    DICTIONARY_REFRESH_SECONDS,
    utc_now_iso,
)
from db import TrackingStore, DictionaryStore
from exceptions import RequestValidationError, StoreError
from logger import get_logger

# ---------------- SERVICES ----------------
from services.dictionary import SqlDictionary, RefreshingDictionary, list_dictionary
from services.status_classifier import StatusClassifier
from services.order_status import OrderStatusService


log = get_logger("app")


def parse_order_request(body) -> tuple:
    """(order_number, raw_item_number) from a POST body, or RequestValidationError."""
    if not isinstance(body, dict):
        raise RequestValidationError("Request body must be a JSON object")

    order = body.get("orderNumber")
    if order is None or isinstance(order, (dict, list, bool)):
        raise RequestValidationError("orderNumber is required")
    order = str(order).strip()
    if not order:
        raise RequestValidationError("orderNumber must not be empty")

    item = body.get("itemNumber")
    if isinstance(item, (dict, list)):
        raise RequestValidationError("itemNumber must be a string or null")
    if item is not None and not isinstance(item, str):
        item = str(item)

    return order, item


def build_dictionary(store):
    if DICTIONARY_MODE == "memory":
        log.info(f"Dictionary mode: memory (refresh every {DICTIONARY_REFRESH_SECONDS}s)")
        return RefreshingDictionary(store, DICTIONARY_REFRESH_SECONDS)
    return SqlDictionary(store)


def create_app(tracking_store=None, dictionary_store=None, dictionary=None) -> Flask:
    tracking_store = tracking_store or TrackingStore()
    dictionary_store = dictionary_store or DictionaryStore()
    dictionary = dictionary or build_dictionary(dictionary_store)

    service = OrderStatusService(tracking_store, StatusClassifier(dictionary))

    app = Flask(__name__)
    app.config["ORDER_STATUS_SERVICE"] = service

    @app.errorhandler(RequestValidationError)
    def bad_request(e):
        return jsonify({"error": str(e)}), 400

    @app.route("/")
    def root():
        return jsonify({
            "message": f"{SERVICE_NAME} is running",
            "env": ENV,
            "endpoints": {
                "health": "GET /health",
                "order-status": "POST /order-status",
                "dictionary": "GET /dictionary",
            },
        })

    @app.route("/health")
    def health():
        stores = {
            "tracking": "up" if tracking_store.ping() else "down",
            "dictionary": "up" if dictionary_store.ping() else "down",
        }
        return jsonify({
            "status": "ok" if all(s == "up" for s in stores.values()) else "degraded",
            "timestamp": utc_now_iso(),
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "stores": stores,
        })

    @app.route("/order-status", methods=["POST"])
    def order_status():
        order, item = parse_order_request(request.get_json(silent=True))
        responses = service.get_order_status(order, item)
        return jsonify([r.to_dict() for r in responses]), 200

    @app.route("/dictionary")
    def dictionary_listing():
        try:
            entries = list_dictionary(dictionary_store)
        except StoreError as e:
            log.error(f"Dictionary listing failed: {e!r}")
            return jsonify({"error": "Dictionary unavailable"}), 503
        return jsonify({
            "count": len(entries),
            "entries": [e.to_dict() for e in entries],
        })

    return app


# waitress imports the module and serves app:app
app = create_app()


if __name__ == "__main__":
    from waitress import serve
    log.info(f"Starting {SERVICE_NAME} {SERVICE_VERSION} ({ENV}) on {HOST}:{PORT}")
    serve(app, host=HOST, port=PORT)

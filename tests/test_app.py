import pytest

pytest.importorskip("pyodbc")

from conftest import FakeStore, FakeTrackingStore, checkpoint_row  # noqa: E402
from exceptions import QueryFailure, RequestValidationError, StoreUnavailable  # noqa: E402
from app import create_app, parse_order_request  # noqa: E402


DICTIONARY_ROWS = [
    {"checkpoint": "Despacho", "estacion": "Almacen", "actividad": "Embalaje", "status_cliente_2": "READY TO SHIP"},
    {"checkpoint": None, "estacion": "Transporte", "actividad": None, "status_cliente_2": "IN TRANSIT"},
]


@pytest.fixture
def stores(two_item_tracking):
    return two_item_tracking, FakeStore(lambda sql, params: DICTIONARY_ROWS)


@pytest.fixture
def app(stores, in_memory_dictionary):
    tracking, dictionary_store = stores
    flask_app = create_app(
        tracking_store=tracking,
        dictionary_store=dictionary_store,
        dictionary=in_memory_dictionary,
    )
    flask_app.config.update({"TESTING": True})
    yield flask_app


@pytest.fixture
def client(app):
    return app.test_client()


def test_order_status_returns_one_row_per_checkpoint(client):
    rv = client.post("/order-status", json={"orderNumber": "112697", "itemNumber": None})

    assert rv.status_code == 200
    data = rv.get_json()
    assert [r["customerStatus"] for r in data] == ["IN TRANSIT", "READY TO SHIP"]
    assert data[0]["orderNumber"] == "112697"
    assert data[0]["checkpointDate"] == "08/03/24"
    assert data[0]["estimatedDeliveryDate"] == "08/03/24"
    assert data[0]["rawStatus"] == "EN PROCESO"


def test_order_status_not_found_is_http_200(client, stores):
    stores[0].checkpoints = []
    rv = client.post("/order-status", json={"orderNumber": "000001"})

    assert rv.status_code == 200
    data = rv.get_json()
    assert len(data) == 1
    assert data[0]["rawStatus"] == "NOT FOUND"
    assert data[0]["customerStatus"] == "NOT FOUND"


def test_backend_failure_is_hidden_from_caller(client, stores):
    stores[0].error = StoreUnavailable("Login timeout expired", store="tracking")
    rv = client.post("/order-status", json={"orderNumber": "112697"})

    assert rv.status_code == 200
    assert "Login timeout" not in rv.get_data(as_text=True)
    assert rv.get_json()[0]["customerStatus"] == "NOT FOUND"


def test_non_numeric_item_is_ignored(client, stores):
    rv = client.post("/order-status", json={"orderNumber": "112697", "itemNumber": "abc"})

    assert rv.status_code == 200
    assert len(rv.get_json()) == 2
    assert stores[0].checkpoint_calls[0][1] == ("112697",)


def test_numeric_item_is_coerced_and_filters(client, stores):
    stores[0].checkpoints = [checkpoint_row(2, "2024-03-08T09:00:00", "Salida", "Transporte", "Carga")]
    rv = client.post("/order-status", json={"orderNumber": 112697, "itemNumber": 2})

    assert rv.status_code == 200
    assert rv.get_json()[0]["itemNumber"] == 2
    assert stores[0].checkpoint_calls[0][1] == ("112697", 2)


@pytest.mark.parametrize("body", [
    {},
    {"orderNumber": None},
    {"orderNumber": "   "},
    {"orderNumber": ["112697"]},
    {"orderNumber": "112697", "itemNumber": {"n": 1}},
])
def test_invalid_bodies_are_rejected(client, body):
    rv = client.post("/order-status", json=body)
    assert rv.status_code == 400
    assert "error" in rv.get_json()


def test_non_json_body_is_rejected(client):
    rv = client.post("/order-status", data="orderNumber=1", content_type="text/plain")
    assert rv.status_code == 400


def test_parse_order_request_trims_order():
    assert parse_order_request({"orderNumber": " 112697 ", "itemNumber": "3"}) == ("112697", "3")
    with pytest.raises(RequestValidationError):
        parse_order_request(None)


def test_dictionary_listing(client):
    rv = client.get("/dictionary")

    assert rv.status_code == 200
    data = rv.get_json()
    assert data["count"] == 2
    assert data["entries"][0] == {
        "checkpoint": "Despacho",
        "station": "Almacen",
        "activity": "Embalaje",
        "customerStatus": "READY TO SHIP",
    }


def test_dictionary_listing_failure_is_503(stores, in_memory_dictionary):
    def boom(sql, params):
        raise QueryFailure('relation "diccionario_estaciones" does not exist', store="dictionary")

    app = create_app(
        tracking_store=stores[0],
        dictionary_store=FakeStore(boom),
        dictionary=in_memory_dictionary,
    )
    rv = app.test_client().get("/dictionary")

    assert rv.status_code == 503
    assert "diccionario" not in rv.get_data(as_text=True)


def test_health_ok(client):
    data = client.get("/health").get_json()
    assert data["status"] == "ok"
    assert data["stores"] == {"tracking": "up", "dictionary": "up"}
    assert data["service"] == "order-status-api"


def test_health_degraded(in_memory_dictionary):
    app = create_app(
        tracking_store=FakeTrackingStore(ping_ok=False),
        dictionary_store=FakeStore(),
        dictionary=in_memory_dictionary,
    )
    data = app.test_client().get("/health").get_json()
    assert data["status"] == "degraded"
    assert data["stores"]["tracking"] == "down"


def test_root_lists_endpoints(client):
    data = client.get("/").get_json()
    assert "order-status" in data["endpoints"]

from shop_assistant.orders import OrderRecord, SessionStore, describe_missing


class Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_record_completeness(full_record):
    assert full_record.is_complete()
    assert OrderRecord().missing() == ["name", "phone", "address", "product", "size"]
    assert not OrderRecord().is_started()

    partial = OrderRecord(name="Ali", size="M")
    assert partial.is_started()
    assert not partial.is_complete()
    assert partial.missing() == ["phone", "address", "product"]


def test_blank_values_count_as_missing():
    assert OrderRecord(name="  ").missing()[0] == "name"


def test_describe_missing():
    text = describe_missing(OrderRecord(name="Ali", phone="0791234567", product="Black Hoodie"))
    assert text == "delivery address, size (or your height in cm)"


def test_sessions_are_isolated():
    store = SessionStore()
    store.save("a", OrderRecord(name="Ali"))
    store.save("b", OrderRecord(name="Sara"))

    assert store.load("a").name == "Ali"
    assert store.load("b").name == "Sara"
    assert store.load("c") == OrderRecord()


def test_loaded_record_is_a_copy():
    store = SessionStore()
    store.save("a", OrderRecord(name="Ali"))
    record = store.load("a")
    record.name = "Changed"
    assert store.load("a").name == "Ali"


def test_records_expire_after_ttl():
    clock = Clock()
    store = SessionStore(ttl_seconds=60, clock=clock)
    store.save("a", OrderRecord(name="Ali"))

    clock.now = 59
    assert store.load("a").name == "Ali"

    clock.now = 60
    assert store.load("a") == OrderRecord()
    assert len(store) == 0


def test_purge_expired():
    clock = Clock()
    store = SessionStore(ttl_seconds=10, clock=clock)
    store.save("old", OrderRecord(name="Ali"))
    clock.now = 5
    store.save("new", OrderRecord(name="Sara"))
    clock.now = 12

    assert store.purge_expired() == 1
    assert len(store) == 1
    assert store.load("new").name == "Sara"


def test_clear():
    store = SessionStore()
    store.save("a", OrderRecord(name="Ali"))
    assert store.clear("a") is True
    assert store.clear("a") is False


def test_new_session_ids_are_unique():
    assert SessionStore.new_session_id() != SessionStore.new_session_id()

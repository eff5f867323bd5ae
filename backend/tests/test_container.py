import threading
import time

import pytest

from sga.container import Container, ServiceNotFoundError


class Service:
    pass


def test_transient_returns_new_instance_each_time():
    c = Container().register("svc", lambda c: Service())
    assert c.resolve("svc") is not c.resolve("svc")


def test_singleton_is_cached_per_container():
    c = Container().singleton("svc", lambda c: Service())
    assert c.resolve("svc") is c.resolve("svc")
    other = Container().singleton("svc", lambda c: Service())
    assert other.resolve("svc") is not c.resolve("svc")


def test_factories_resolve_their_dependencies():
    c = Container()
    c.singleton("config", lambda c: {"url": "sqlite://"})
    c.register("client", lambda c: ("client", c.resolve("config")["url"]))
    assert c.resolve("client") == ("client", "sqlite://")


def test_unknown_service_raises_with_name():
    with pytest.raises(ServiceNotFoundError) as exc:
        Container().resolve("nope")
    assert str(exc.value) == "Service nope not found in container"
    assert exc.value.name == "nope"


def test_non_callable_factory_is_rejected():
    with pytest.raises(TypeError):
        Container().register("svc", "not callable")


def test_register_replaces_previous_registration():
    c = Container().register("svc", lambda c: 1).register("svc", lambda c: 2)
    assert c.resolve("svc") == 2


def test_has_and_clear():
    c = Container().singleton("svc", lambda c: Service())
    c.resolve("svc")
    assert c.has("svc")
    c.clear()
    assert not c.has("svc")
    with pytest.raises(ServiceNotFoundError):
        c.resolve("svc")


def test_singleton_constructed_once_under_concurrency():
    calls = []

    def slow_factory(c):
        calls.append(1)
        time.sleep(0.05)
        return Service()

    c = Container().singleton("svc", slow_factory)
    results = []
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        results.append(c.resolve("svc"))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(calls) == 1
    assert all(r is results[0] for r in results)


def test_app_wiring_resolves_all_use_cases(container):
    from sga.dependencies import USE_CASES

    for name in USE_CASES:
        assert container.resolve(name) is container.resolve(name)
    assert container.resolve("healthController") is not container.resolve("healthController")

import asyncio
from abc import ABC, abstractmethod

import pytest

from reach.di import Container, Lifetime, ViewModelFactory, bootstrap
from reach.domain.sources import DataSource, HierarchySource
from reach.errors import CircularDependencyError, ResolutionError
from reach.errors.handler import ErrorHandler
from reach.events.bus import EventBus
from reach.infrastructure.sources import HttpHierarchySource, SQLiteCustomerSource
from reach.settings import SettingsManager


class IService(ABC):
    @abstractmethod
    def do_something(self):
        pass


class ServiceImpl(IService):
    def do_something(self):
        return "done"


class ServiceWithArgs(IService):
    def __init__(self, value):
        self.value = value

    def do_something(self):
        return self.value


class TestContainer:
    def test_transient(self):
        container = Container()
        container.register_transient(IService, ServiceImpl)

        assert container.resolve(IService) is not container.resolve(IService)

    def test_singleton(self):
        container = Container()
        container.register_singleton(IService, ServiceImpl)

        assert container.resolve(IService) is container.resolve(IService)

    def test_kwargs(self):
        container = Container()
        container.register_singleton(IService, ServiceWithArgs, value="test_value")

        assert container.resolve(IService).do_something() == "test_value"

    def test_factory_receives_container(self):
        container = Container()
        container.register_instance(str, "configured")
        container.register_factory(IService, lambda c: ServiceWithArgs(c.resolve(str)))

        assert container.resolve(IService).do_something() == "configured"

    def test_singleton_factory(self):
        container = Container()
        container.register_factory(IService, lambda c: ServiceImpl(), Lifetime.SINGLETON)

        assert container.resolve(IService) is container.resolve(IService)

    def test_unregistered(self):
        with pytest.raises(ResolutionError):
            Container().resolve(IService)

    def test_circular_dependency(self):
        class A:
            pass

        class B:
            pass

        container = Container()
        container.register_factory(A, lambda c: c.resolve(B))
        container.register_factory(B, lambda c: c.resolve(A))

        with pytest.raises(CircularDependencyError):
            container.resolve(A)

    def test_scope_caches_scoped_registrations(self):
        container = Container()
        container.register_scoped(IService, ServiceImpl)
        scope = container.create_scope()
        other = container.create_scope()

        assert scope.resolve(IService) is scope.resolve(IService)
        assert scope.resolve(IService) is not other.resolve(IService)

    def test_scope_dispose_disposes_instances(self):
        class Disposable:
            disposed = False

            def dispose(self):
                self.disposed = True

        container = Container()
        container.register_scoped(Disposable)
        scope = container.create_scope()
        instance = scope.resolve(Disposable)

        scope.dispose()

        assert instance.disposed is True

    def test_reregistering_drops_cached_singleton(self):
        container = Container()
        container.register_singleton(IService, ServiceImpl)
        first = container.resolve(IService)
        container.register_singleton(IService, ServiceImpl)

        assert container.resolve(IService) is not first


class TestBootstrap:
    def test_services_are_wired_from_settings(self, tmp_path):
        settings = SettingsManager(tmp_path / "settings.json")
        settings.load()
        settings.set("grid.page_size", 100)
        settings.set("grid.search_debounce_ms", 250)
        container = Container()

        bootstrap(container, settings)

        assert container.resolve(SettingsManager) is settings
        assert container.resolve(EventBus) is container.resolve(EventBus)
        assert isinstance(container.resolve(ErrorHandler), ErrorHandler)
        assert container.is_registered(HierarchySource)
        assert not container.is_registered(IService)
        source = container.resolve(DataSource)
        assert isinstance(source, SQLiteCustomerSource)
        assert (tmp_path / "reach.db").exists()

        grid = container.resolve(ViewModelFactory).customer_grid("company-1")
        assert grid.query.value.page_size == 100
        assert grid.owner_id == "company-1"
        assert grid._debouncer.delay_ms == 250

    def test_hierarchy_source_uses_reports_settings(self, tmp_path):
        settings = SettingsManager(tmp_path / "settings.json")
        settings.load()
        settings.set("reports.base_url", "http://reports.example:8080/")
        container = Container()
        bootstrap(container, settings)

        async def scenario():
            source = container.resolve(HierarchySource)
            tree = container.resolve(ViewModelFactory).hierarchy_tree("company-1", ["b1"])
            await source.close()
            return source, tree

        source, tree = asyncio.run(scenario())

        assert isinstance(source, HttpHierarchySource)
        assert source.base_url == "http://reports.example:8080"
        assert tree.branch_ids == ("b1",)

    def test_database_path_setting(self, tmp_path):
        settings = SettingsManager(tmp_path / "settings.json")
        settings.load()
        settings.set("database.path", str(tmp_path / "custom.db"))
        container = Container()
        bootstrap(container, settings)

        container.resolve(DataSource)

        assert (tmp_path / "custom.db").exists()


def test_scope_as_context_manager_and_error_messages():
    class Disposable:
        disposed = False

        def dispose(self):
            self.disposed = True

    container = Container()
    container.register_scoped(Disposable)
    with container.create_scope() as scope:
        instance = scope.resolve(Disposable)

    assert instance.disposed is True
    assert container.resolve(Disposable) is not container.resolve(Disposable)
    with pytest.raises(ResolutionError, match="IService"):
        container.resolve(IService)

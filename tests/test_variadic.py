import unittest

from graphbind import Container, ParameterBag


class TestVariadicConstructorInjection(unittest.TestCase):
    cont: Container

    def setUp(self):
        self.cont = Container()

    def test_extract_ignores_inherited_variadic_args_and_kwargs(self):
        class Base:
            def __init__(self, value: int = 7, *args, **kwargs):
                self.value = value
                self.args = args
                self.kwargs = kwargs

        class Derived(Base):
            ...
            # No explicit __init__; inherits Base.__init__ with *args/**kwargs

        self.cont.provide(Derived)
        child = self.cont.extract(Derived)

        assert isinstance(child, Derived)
        assert child.value == 7
        assert child.args == ()
        assert child.kwargs == {}

    def test_parameter_bag_does_not_leak_into_variadic_kwargs(self):
        class Base:
            def __init__(self, value: int = 7, **kwargs):
                self.value = value
                self.kwargs = kwargs

        class Derived(Base):
            def __init__(self, name: str, **kwargs):
                super().__init__(**kwargs)
                self.name = name

        self.cont.provide(Derived, ParameterBag(name="abc", a=5))
        child = self.cont.extract(Derived)

        assert child.name == "abc"
        assert child.kwargs == {}
        assert child.value == 7

    def test_positional_only_parameters_are_passed_positionally(self):
        class Clock: ...

        class Scheduler:
            def __init__(self, clock: Clock, /, interval: int = 10):
                self.clock = clock
                self.interval = interval

        self.cont.provide(Clock)
        self.cont.provide(Scheduler)

        scheduler = self.cont.extract(Scheduler)
        assert isinstance(scheduler.clock, Clock)
        assert scheduler.interval == 10

#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Deferred values produced by resources once they are realized.

An :class:`OutputHandle` is a troposphere helper function, so it can be set on any resource property
without tripping the property type validation. When the deployment is rendered it shows as the
CloudFormation intrinsic function it stands for, when the deployment is realized the engine swaps it for
the resolved value.
"""

from __future__ import annotations

from concurrent.futures import Future
from threading import Lock
from typing import Any, Callable, Iterable

from troposphere import AWSHelperFn, GetAtt

from ecs_webstack.common.logging import LOG

APPLY_KEY = "ECSWebStack::Apply"


def _chain(source: Future, target: Future, func: Callable) -> None:
    """
    Propagates the outcome of source into target, mapping the result with func.
    """
    if source.cancelled():
        target.cancel()
        return
    error = source.exception()
    if error is not None:
        target.set_exception(error)
        return
    try:
        target.set_result(func(source.result()))
    except Exception as error:
        LOG.debug(
            f"Output transformation {getattr(func, '__name__', func)} failed: {error}"
        )
        target.set_exception(error)


class OutputHandle(AWSHelperFn):
    """
    Deferred value owned by one or more resources of the deployment.

    :ivar concurrent.futures.Future future: the future the value resolves into. Only the deployment driver waits on it.
    :ivar frozenset[str] resources: titles of the resources the value depends on.
    """

    def __init__(
        self, future: Future, resources: Iterable[str] = None, data: Any = None
    ):
        self.future = future
        self.resources = frozenset(resources or ())
        self.data = data

    def __repr__(self):
        return f"OutputHandle({sorted(self.resources)}, {self.data!r})"

    @classmethod
    def from_value(cls, value: Any) -> OutputHandle:
        """
        Wraps an already known value into a resolved handle
        """
        future = Future()
        future.set_result(value)
        return cls(future, data=value)

    @classmethod
    def from_attribute(
        cls, realization: Future, title: str, attribute: str
    ) -> OutputHandle:
        """
        Creates the handle for the attribute of a resource, out of the future of the resource realization.

        :param concurrent.futures.Future realization: resolves into the dict of the resource attributes.
        :param str title: the resource logical name
        :param str attribute: name of the attribute
        """

        def get_attribute(attributes: dict):
            if attribute not in attributes:
                raise KeyError(
                    f"{title} - Attribute {attribute} not returned after realization. Got",
                    list(attributes.keys()),
                )
            return attributes[attribute]

        future = Future()
        realization.add_done_callback(
            lambda source: _chain(source, future, get_attribute)
        )
        return cls(future, resources=[title], data=GetAtt(title, attribute))

    def apply(self, func: Callable, label: str = None) -> OutputHandle:
        """
        Derives a new handle by mapping func over the resolved value. Does not block.
        The function runs once, in whichever thread resolves the current handle.

        :param func: function taking the resolved value
        :param str label: name shown for the derived value when rendered
        """
        future = Future()
        self.future.add_done_callback(lambda source: _chain(source, future, func))
        return OutputHandle(
            future,
            resources=self.resources,
            data={
                APPLY_KEY: [
                    label if label else getattr(func, "__name__", "lambda"),
                    self.data,
                ]
            },
        )

    def __getitem__(self, index) -> OutputHandle:
        return self.apply(lambda value: value[index], label=f"Index{index}")

    @staticmethod
    def all(*handles: OutputHandle) -> OutputHandle:
        """
        Combines handles into one resolving to the tuple of their values, once they all resolved.
        """
        future = Future()
        lock = Lock()
        pending = [len(handles)]
        values = [None] * len(handles)
        if not handles:
            future.set_result(())

        def on_done(position: int, source: Future):
            with lock:
                if future.done():
                    return
                if source.cancelled():
                    future.cancel()
                    return
                error = source.exception()
                if error is not None:
                    future.set_exception(error)
                    return
                values[position] = source.result()
                pending[0] -= 1
                if not pending[0]:
                    future.set_result(tuple(values))

        for count, handle in enumerate(handles):
            handle.future.add_done_callback(
                lambda source, position=count: on_done(position, source)
            )
        resources = set()
        for handle in handles:
            resources.update(handle.resources)
        return OutputHandle(
            future,
            resources=resources,
            data={APPLY_KEY: ["All", [handle.data for handle in handles]]},
        )


def find_output_handles(value: Any, handles: list = None) -> list:
    """
    Recursively finds all the OutputHandle set in a resource or property value.

    :param value: troposphere object, list, dict or literal
    :param list handles: accumulator
    :rtype: list[OutputHandle]
    """
    if handles is None:
        handles = []
    if isinstance(value, OutputHandle):
        handles.append(value)
    elif hasattr(value, "properties") and isinstance(value.properties, dict):
        for prop_value in value.properties.values():
            find_output_handles(prop_value, handles)
    elif isinstance(value, dict):
        for prop_value in value.values():
            find_output_handles(prop_value, handles)
    elif isinstance(value, (list, tuple)):
        for item in value:
            find_output_handles(item, handles)
    return handles

#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Realizes a Deployment with a Provisioner.

Each resource is handed to a worker thread once every resource it references, or is ordered after,
has been realized and every OutputHandle in its properties is resolved. Independent resources are
realized concurrently. The first failure aborts the deployment: resources not started yet are not
realized, nothing already realized is rolled back.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, wait
from threading import Event, Lock
from typing import Any

from troposphere import AWSHelperFn

from ecs_webstack.common.logging import LOG
from ecs_webstack.engine.deployment import Deployment
from ecs_webstack.engine.outputs import OutputHandle
from ecs_webstack.engine.provisioners import Provisioner
from ecs_webstack.exceptions import ResourceDeclarationError, WebStackException


def resolve_value(value: Any, title: str = None) -> Any:
    """
    Converts a property value into its plain python value, with all OutputHandle replaced by their result.
    Must only be called once all the handles are resolved.

    :param value: the property value
    :param str title: title of the resource being resolved, for error reporting
    """
    if isinstance(value, OutputHandle):
        return resolve_value(value.future.result(timeout=0), title)
    elif isinstance(value, AWSHelperFn):
        raise ResourceDeclarationError(
            f"{title} - Intrinsic function {value.to_dict()} cannot be realized by the engine",
            title=title,
        )
    elif hasattr(value, "properties") and isinstance(value.properties, dict):
        return {
            key: resolve_value(prop_value, title)
            for key, prop_value in value.properties.items()
        }
    elif isinstance(value, dict):
        return {key: resolve_value(item, title) for key, item in value.items()}
    elif isinstance(value, (list, tuple)):
        return [resolve_value(item, title) for item in value]
    return value


class Engine:
    """
    Class to drive the realization of a deployment.

    :ivar Provisioner provisioner: realizes a single resource
    :ivar int max_workers: maximum number of resources realized at the same time
    """

    def __init__(self, provisioner: Provisioner, max_workers: int = 8):
        if not isinstance(provisioner, Provisioner):
            raise TypeError(
                "provisioner must be of type", Provisioner, "Got", type(provisioner)
            )
        self.provisioner = provisioner
        self.max_workers = max_workers
        self._abort = Event()
        self._lock = Lock()
        self._first_error = None

    def _record_failure(self, error: BaseException) -> None:
        with self._lock:
            if self._first_error is None:
                self._first_error = error
                self._abort.set()

    def _realize(self, deployment: Deployment, title: str) -> None:
        realization = deployment.realization(title)
        if self._abort.is_set():
            realization.set_exception(
                ResourceDeclarationError(
                    f"{title} - Not realized, {deployment.name} deployment aborted",
                    title=title,
                )
            )
            return
        resource = deployment.resources[title]
        try:
            properties = resolve_value(resource.properties, title)
            LOG.info(f"{deployment.name} - Realizing {title} ({resource.resource_type})")
            attributes = self.provisioner.realize(
                title, resource.resource_type, properties
            )
        except WebStackException as error:
            LOG.error(f"{deployment.name} - {title} failed: {error}")
            self._record_failure(error)
            realization.set_exception(error)
            return
        except Exception as error:
            LOG.exception(error)
            failure = ResourceDeclarationError(
                f"{title} - Failed to realize {resource.resource_type}",
                str(error),
                title=title,
            )
            failure.__cause__ = error
            self._record_failure(failure)
            realization.set_exception(failure)
            return
        LOG.info(f"{deployment.name} - {title} realized")
        realization.set_result(attributes)

    def _schedule(
        self, executor: ThreadPoolExecutor, deployment: Deployment, title: str
    ) -> None:
        """
        Submits the realization of the resource once all of its prerequisites are done.
        """
        prerequisites = [
            deployment.realization(dependency)
            for dependency in deployment.ordering_dependencies(title)
        ] + [handle.future for handle in deployment.output_handles(title)]
        if not prerequisites:
            executor.submit(self._realize, deployment, title)
            return
        lock = Lock()
        pending = [len(prerequisites)]
        realization = deployment.realization(title)

        def on_done(prerequisite: Future):
            error = (
                ResourceDeclarationError(f"{title} - Prerequisite cancelled", title=title)
                if prerequisite.cancelled()
                else prerequisite.exception()
            )
            with lock:
                if realization.done():
                    return
                if error is not None:
                    self._record_failure(error)
                    realization.set_exception(error)
                    return
                pending[0] -= 1
                ready = not pending[0]
            if ready:
                executor.submit(self._realize, deployment, title)

        for prerequisite in prerequisites:
            prerequisite.add_done_callback(on_done)

    def run(self, deployment: Deployment) -> dict:
        """
        Realizes all the resources of the deployment and waits for them.

        :return: the exported values, resolved
        :rtype: dict
        :raises: the first error met during the realization
        """
        ordered = deployment.validate()
        self._abort.clear()
        self._first_error = None
        LOG.info(
            f"{deployment.name} - Realizing {len(ordered)} resources with {self.max_workers} workers"
        )
        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="webstack"
        ) as executor:
            for title in ordered:
                self._schedule(executor, deployment, title)
            wait([deployment.realization(title) for title in ordered])
        if self._first_error is not None:
            raise self._first_error
        exports = {}
        for name, handle in deployment.exports.items():
            exports[name] = resolve_value(handle)
            LOG.info(f"{deployment.name} - {name}: {exports[name]}")
        return exports

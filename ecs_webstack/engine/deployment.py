#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Module for the Deployment class, which holds the graph of declared resources.

Resources are troposphere objects, kept in a troposphere Template so the whole graph can be rendered.
Two kinds of edges link them:

* data edges, when a property of a resource references an OutputHandle owned by another resource
* ordering edges, the ``DependsOn`` attribute, for resources which must be realized after another one
  without consuming any of its outputs.
"""

from __future__ import annotations

from concurrent.futures import Future
from typing import NamedTuple, Union

from troposphere import AWSObject
from troposphere import Output as TemplateOutput
from troposphere import Template

from ecs_webstack.common.logging import LOG
from ecs_webstack.engine.outputs import OutputHandle, find_output_handles
from ecs_webstack.exceptions import ResourceDeclarationError


class DataEdge(NamedTuple):
    """dependent consumes at least one output of dependency"""

    dependent: str
    dependency: str


class OrderingEdge(NamedTuple):
    """dependent must not be realized before dependency, no data involved"""

    dependent: str
    dependency: str


Edge = Union[DataEdge, OrderingEdge]


def get_depends_on(resource: AWSObject) -> list:
    """
    Returns the list of titles set in the DependsOn attribute of the resource
    """
    depends_on = resource.resource.get("DependsOn", [])
    if isinstance(depends_on, str):
        return [depends_on]
    return list(depends_on)


class Deployment:
    """
    Class to represent the graph of resources to realize for a deployment.

    A Deployment is realized once. Declaring it again (new Deployment, same settings) gives the same titles.

    :ivar str name: name of the deployment
    :ivar troposphere.Template template: the template holding the resources and exported outputs
    :ivar dict[str, OutputHandle] exports: the named values published once realized
    """

    def __init__(self, name: str, description: str = None):
        self.name = name
        self.template = Template(
            Description=description if description else f"ECS WebStack - {name}"
        )
        self.exports = {}
        self._realizations = {}

    @property
    def resources(self) -> dict:
        return self.template.resources

    def declare(self, resource: AWSObject) -> AWSObject:
        """
        Adds the resource to the deployment.

        :param troposphere.AWSObject resource:
        :raises: ResourceDeclarationError if the title is already declared
        """
        if not isinstance(resource, AWSObject):
            raise TypeError(
                "resource must be of type", AWSObject, "Got", type(resource)
            )
        if resource.title in self.resources:
            raise ResourceDeclarationError(
                f"{resource.title} is already declared in {self.name}",
                title=resource.title,
            )
        self.template.add_resource(resource)
        self._realizations[resource.title] = Future()
        LOG.debug(f"{self.name} - Declared {resource.title} ({resource.resource_type})")
        return resource

    def realization(self, title: str) -> Future:
        """
        The future resolving into the attributes of the resource once realized.
        """
        return self._realizations[title]

    def get_att(self, resource: AWSObject, attribute: str) -> OutputHandle:
        """
        Returns the deferred value of the resource attribute.

        :param troposphere.AWSObject resource:
        :param str attribute: name of the attribute, as returned by the provisioner
        """
        if resource.title not in self._realizations:
            raise ResourceDeclarationError(
                f"{resource.title} is not declared in {self.name}",
                title=resource.title,
            )
        return OutputHandle.from_attribute(
            self._realizations[resource.title], resource.title, attribute
        )

    def depends_on(self, resource: AWSObject, *dependencies: AWSObject) -> None:
        """
        Adds ordering edges from resource to each dependency.
        """
        titles = get_depends_on(resource)
        for dependency in dependencies:
            if dependency.title not in titles:
                titles.append(dependency.title)
        resource.DependsOn = titles

    def export(self, name: str, value: OutputHandle) -> None:
        """
        Publishes the value under name once the deployment is realized
        """
        if name in self.exports:
            raise KeyError(f"Output {name} is already exported in {self.name}")
        self.template.add_output(
            TemplateOutput(name, Value=value, Description=f"{self.name} {name}")
        )
        self.exports[name] = value

    def output_handles(self, title: str) -> list:
        """
        All the handles referenced by the properties of the resource

        :rtype: list[OutputHandle]
        """
        return find_output_handles(self.resources[title])

    def data_dependencies(self, title: str) -> set:
        dependencies = set()
        for handle in self.output_handles(title):
            dependencies.update(handle.resources)
        dependencies.discard(title)
        return dependencies

    def ordering_dependencies(self, title: str) -> list:
        return get_depends_on(self.resources[title])

    def dependencies(self, title: str) -> set:
        return self.data_dependencies(title).union(self.ordering_dependencies(title))

    def edges(self) -> list:
        """
        All the edges of the graph

        :rtype: list[Edge]
        """
        edges = []
        for title in self.resources:
            for dependency in sorted(self.data_dependencies(title)):
                edges.append(DataEdge(title, dependency))
            for dependency in self.ordering_dependencies(title):
                edges.append(OrderingEdge(title, dependency))
        return edges

    def validate(self) -> list:
        """
        Checks that all the dependencies are declared and that the graph has no cycle.

        :return: the titles of the resources, in an order satisfying all edges
        :rtype: list[str]
        :raises: ResourceDeclarationError
        """
        for title in self.resources:
            for dependency in self.dependencies(title):
                if dependency not in self.resources:
                    raise ResourceDeclarationError(
                        f"{title} depends on {dependency} which is not declared in {self.name}",
                        title=title,
                    )
        ordered = []
        visiting = set()
        visited = set()

        def visit(title, path):
            if title in visited:
                return
            if title in visiting:
                raise ResourceDeclarationError(
                    f"Dependency cycle detected in {self.name}",
                    " -> ".join(path + [title]),
                    title=title,
                )
            visiting.add(title)
            for dependency in sorted(self.dependencies(title)):
                visit(dependency, path + [title])
            visiting.remove(title)
            visited.add(title)
            ordered.append(title)

        for resource_title in self.resources:
            visit(resource_title, [])
        return ordered

#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

from concurrent.futures import Future

from pytest import raises

from ecs_webstack.engine.outputs import OutputHandle, find_output_handles
from ecs_webstack.exceptions import DecodeError


def test_apply_does_not_run_before_resolution():
    calls = []
    realization = Future()
    handle = OutputHandle.from_attribute(realization, "AppRepo", "RepositoryUri")
    derived = handle.apply(lambda value: calls.append(value) or value.upper())
    assert not derived.future.done()
    assert calls == []
    realization.set_result({"RepositoryUri": "abcd"})
    assert derived.future.result() == "ABCD"
    assert calls == ["abcd"]
    assert derived.resources == frozenset(["AppRepo"])


def test_apply_chain_runs_once_for_many_consumers():
    calls = []
    source = Future()
    handle = OutputHandle(source, resources=["AppImage"])
    document = handle.apply(lambda value: calls.append(value) or f"[{value}]")
    first = document.apply(len)
    second = document.apply(lambda value: value[1:-1])
    source.set_result("image")
    assert first.future.result() == 7
    assert second.future.result() == "image"
    assert calls == ["image"]


def test_apply_error_propagates():
    source = Future()
    handle = OutputHandle(source, resources=["AppRepo"])

    def fail(value):
        raise DecodeError("Invalid", value)

    derived = handle.apply(fail).apply(str.upper)
    source.set_result("abcd")
    assert isinstance(derived.future.exception(), DecodeError)


def test_missing_attribute():
    realization = Future()
    handle = OutputHandle.from_attribute(realization, "AppRepo", "Nope")
    realization.set_result({"RepositoryUri": "abcd"})
    assert isinstance(handle.future.exception(), KeyError)


def test_index():
    handle = OutputHandle.from_value(("AWS", "secrettoken"))
    assert handle[0].future.result() == "AWS"
    assert handle[1].future.result() == "secrettoken"


def test_all():
    first = Future()
    second = Future()
    combined = OutputHandle.all(
        OutputHandle(first, resources=["A"]), OutputHandle(second, resources=["B"])
    )
    assert combined.resources == frozenset(["A", "B"])
    second.set_result(2)
    assert not combined.future.done()
    first.set_result(1)
    assert combined.future.result() == (1, 2)
    assert OutputHandle.all().future.result() == ()


def test_all_error():
    first = Future()
    combined = OutputHandle.all(
        OutputHandle(first), OutputHandle.from_value("ready")
    )
    first.set_exception(ValueError("nope"))
    assert isinstance(combined.future.exception(), ValueError)


def test_render():
    realization = Future()
    handle = OutputHandle.from_attribute(realization, "WebLoadBalancer", "DNSName")
    assert handle.to_dict() == {"Fn::GetAtt": ["WebLoadBalancer", "DNSName"]}
    derived = handle.apply(str.lower, label="Lower")
    assert derived.to_dict() == {
        "ECSWebStack::Apply": ["Lower", {"Fn::GetAtt": ["WebLoadBalancer", "DNSName"]}]
    }


def test_find_output_handles():
    first = OutputHandle.from_value("a")
    second = OutputHandle.from_value("b")
    found = find_output_handles({"Key": [first, {"Nested": second}], "Other": "c"})
    assert found == [first, second]

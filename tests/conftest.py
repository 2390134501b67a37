"""Shared test fixtures for logplane."""

from unittest.mock import MagicMock

import pytest

from logplane.models import (
    HTTPOutput,
    LogPipeline,
    LokiOutput,
    Output,
    PipelineDefaults,
    SecretKeyRef,
    ValueFromSource,
    ValueType,
)


def secret_value(name, key, namespace="default"):
    return ValueType(value_from=ValueFromSource(secret_key_ref=SecretKeyRef(name=name, namespace=namespace, key=key)))


@pytest.fixture
def defaults():
    return PipelineDefaults(fs_buffer_limit="1G")


@pytest.fixture
def http_pipeline():
    return LogPipeline(
        name="foo",
        output=Output(http=HTTPOutput(host=ValueType(value="localhost"), uri="/my-uri")),
    )


@pytest.fixture
def loki_pipeline():
    return LogPipeline(
        name="foo",
        output=Output(
            loki=LokiOutput(
                url=ValueType(value="http://loki:3100/loki/api/v1/push"),
                labels={"job": "telemetry-fluent-bit"},
                remove_keys=["kubernetes", "stream"],
            )
        ),
    )


@pytest.fixture
def custom_pipeline():
    return LogPipeline(
        name="foo",
        output=Output(custom="name stdout\nformat json_lines"),
    )


@pytest.fixture
def fake_redis():
    fake = MagicMock()
    fake.publish.return_value = 1
    return fake

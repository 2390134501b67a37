"""Tests for the pipeline data model."""

import pytest
from pydantic import ValidationError

from conftest import secret_value

from logplane.envvar import format_env_var_name
from logplane.models import HTTPOutput, LogPipeline, LokiOutput, Output, OutputKind, ValueType


class TestValueType:
    def test_literal_is_defined(self):
        assert ValueType(value="x").is_defined()

    def test_secret_ref_is_defined(self):
        assert secret_value("s", "k").is_defined()

    def test_secret_ref_needs_name_and_key(self):
        assert not secret_value("s", "").is_defined()
        assert not secret_value("", "k").is_defined()

    def test_empty_is_not_defined(self):
        assert not ValueType().is_defined()


class TestOutputKind:
    def test_unset(self):
        assert Output().kind == OutputKind.UNSET

    def test_custom(self):
        assert Output(custom="name stdout").kind == OutputKind.CUSTOM

    def test_http(self):
        output = Output(http=HTTPOutput(host=ValueType(value="localhost")))
        assert output.kind == OutputKind.HTTP
        assert output.is_http_defined()
        assert not output.is_custom_defined()
        assert not output.is_loki_defined()

    def test_loki(self):
        assert Output(loki=LokiOutput(url=ValueType(value="http://loki"))).kind == OutputKind.LOKI

    def test_two_sinks_rejected(self):
        with pytest.raises(ValidationError, match="only one of custom, http or loki"):
            Output(custom="name stdout", loki=LokiOutput(url=ValueType(value="http://loki")))


class TestLogPipeline:
    def test_parses_custom_resource_keys(self):
        pipeline = LogPipeline.model_validate(
            {
                "name": "foo",
                "output": {
                    "http": {
                        "host": {"valueFrom": {"secretKeyRef": {"name": "creds", "namespace": "ns", "key": "host"}}},
                        "tls": {"skipCertificateValidation": True},
                    }
                },
            }
        )

        assert pipeline.output.kind == OutputKind.HTTP
        assert pipeline.output.http.host.value_from.secret_key_ref.name == "creds"
        assert pipeline.output.http.tls.skip_certificate_validation

    def test_remove_keys_alias(self):
        loki = LokiOutput.model_validate({"url": {"value": "http://loki"}, "removeKeys": ["a", "b"]})
        assert loki.remove_keys == ("a", "b")

    def test_name_required(self):
        with pytest.raises(ValidationError):
            LogPipeline(name="")

    def test_immutable(self):
        pipeline = LogPipeline(name="foo")
        with pytest.raises(ValidationError):
            pipeline.name = "bar"

    def test_loki_collections_are_read_only(self):
        loki = LokiOutput(url=ValueType(value="http://loki"), labels={"app": "foo"}, remove_keys=["stream"])

        with pytest.raises(TypeError):
            loki.labels["app"] = "bar"
        assert not hasattr(loki.remove_keys, "append")
        assert LokiOutput().labels == {}
        with pytest.raises(TypeError):
            LokiOutput().labels["app"] = "bar"

    def test_labels_dump_as_dict(self):
        loki = LokiOutput.model_validate({"url": {"value": "http://loki"}, "labels": {"app": "foo"}, "removeKeys": ["a"]})
        dumped = loki.model_dump(by_alias=True)

        assert dumped["labels"] == {"app": "foo"}
        assert type(dumped["labels"]) is dict
        assert list(dumped["removeKeys"]) == ["a"]


class TestFormatEnvVarName:
    def test_compliant_name(self):
        assert format_env_var_name("my-pipe", "kyma-system", "my.secret", "key-1") == "MY_2DPIPE__KYMA_2DSYSTEM__MY_2ESECRET__KEY_2D1"

    def test_deterministic(self):
        first = format_env_var_name("p", "ns", "s", "k")
        assert all(format_env_var_name("p", "ns", "s", "k") == first for _ in range(10))

    def test_underscores_dots_and_dashes_stay_distinct(self):
        names = {
            format_env_var_name("p", "a_b", "c", "k"),
            format_env_var_name("p", "a", "b_c", "k"),
            format_env_var_name("p", "a-b", "c", "k"),
            format_env_var_name("p", "a.b", "c", "k"),
            format_env_var_name("p", "a", "b", "c_k"),
        }
        assert len(names) == 5

    def test_case_stays_distinct(self):
        assert format_env_var_name("p", "ns", "s", "apiKey") != format_env_var_name("p", "ns", "s", "apikey")

    def test_empty_parts_stay_distinct(self):
        assert format_env_var_name("p", "", "s_k", "") != format_env_var_name("p", "s", "", "k")

    def test_only_env_var_characters(self):
        name = format_env_var_name("p", "ns", "sécret", "key/x y")
        assert set(name) <= set("ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_")
        assert name == "P__NS__S_C3_A9CRET__KEY_2FX_20Y"

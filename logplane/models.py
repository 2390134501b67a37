from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator


class _Spec(BaseModel):
    # Accept both the custom resource's camelCase keys and attribute names
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class SecretKeyRef(_Spec):
    name: str = ""
    namespace: str = ""
    key: str = ""


class ValueFromSource(_Spec):
    secret_key_ref: Optional[SecretKeyRef] = Field(None, alias="secretKeyRef")

    def is_secret_key_ref(self) -> bool:
        ref = self.secret_key_ref
        return ref is not None and ref.name != "" and ref.key != ""


class ValueType(_Spec):
    value: str = ""
    value_from: Optional[ValueFromSource] = Field(None, alias="valueFrom")

    def is_defined(self) -> bool:
        if self.value != "":
            return True
        return self.value_from is not None and self.value_from.is_secret_key_ref()


class TLSConfig(_Spec):
    disabled: bool = False
    skip_certificate_validation: bool = Field(False, alias="skipCertificateValidation")
    ca: Optional[ValueType] = None
    cert: Optional[ValueType] = None
    key: Optional[ValueType] = None


class HTTPOutput(_Spec):
    host: ValueType = Field(default_factory=ValueType)
    user: ValueType = Field(default_factory=ValueType)
    password: ValueType = Field(default_factory=ValueType)
    uri: str = ""
    port: str = ""
    compress: str = ""
    format: str = ""
    tls: TLSConfig = Field(default_factory=TLSConfig)


class LokiOutput(_Spec):
    url: ValueType = Field(default_factory=ValueType)
    labels: Mapping[str, str] = Field(default_factory=dict, validate_default=True)
    remove_keys: Tuple[str, ...] = Field((), alias="removeKeys")

    @field_validator("labels")
    @classmethod
    def freeze_labels(cls, v):
        return MappingProxyType(dict(v))

    @field_serializer("labels")
    def dump_labels(self, v) -> Dict[str, str]:
        return dict(v)


class OutputKind(str, Enum):
    CUSTOM = "custom"
    HTTP = "http"
    LOKI = "loki"
    UNSET = "unset"


class Output(_Spec):
    custom: str = Field("", description="Raw Fluent Bit output directives, one 'key value' pair per line")
    http: Optional[HTTPOutput] = None
    loki: Optional[LokiOutput] = None

    # Example custom:
    # name   http
    # host   logs.example.com
    # format json

    def is_custom_defined(self) -> bool:
        return self.custom != ""

    def is_http_defined(self) -> bool:
        return self.http is not None and self.http.host.is_defined()

    def is_loki_defined(self) -> bool:
        return self.loki is not None and self.loki.url.is_defined()

    @property
    def kind(self) -> OutputKind:
        if self.is_custom_defined():
            return OutputKind.CUSTOM
        if self.is_http_defined():
            return OutputKind.HTTP
        if self.is_loki_defined():
            return OutputKind.LOKI
        return OutputKind.UNSET

    @model_validator(mode="after")
    def check_single_sink(self):
        defined = [self.is_custom_defined(), self.is_http_defined(), self.is_loki_defined()]
        if sum(defined) > 1:
            raise ValueError("only one of custom, http or loki output can be defined")
        return self


class LogPipeline(_Spec):
    name: str = Field(..., min_length=1)
    output: Output = Field(default_factory=Output)


class PipelineDefaults(_Spec):
    fs_buffer_limit: str = "1G"

from typing import List
from pydantic import BaseModel

from logplane.envvar import format_env_var_name
from logplane.models import LogPipeline, ValueType
from logplane.output import TLS_CA_PATH, TLS_CERT_PATH, TLS_KEY_PATH


class FieldDescriptor(BaseModel):
    env_var_name: str
    secret_namespace: str
    secret_name: str
    secret_key: str


class TLSFileDescriptor(BaseModel):
    path: str
    source: ValueType


def _secret_values(pipeline: LogPipeline) -> List[ValueType]:
    output = pipeline.output
    if output.is_http_defined():
        return [output.http.host, output.http.user, output.http.password]
    if output.is_loki_defined():
        return [output.loki.url]
    return []


def lookup_secret_refs(pipeline: LogPipeline) -> List[FieldDescriptor]:
    """
    Secrets whose placeholders end up in the compiled output.
    The caller projects each one into the agent's environment under env_var_name.
    """
    found = {}
    for value in _secret_values(pipeline):
        # A literal value wins over the reference, so no env var is needed
        if value.value != "" or value.value_from is None or not value.value_from.is_secret_key_ref():
            continue
        ref = value.value_from.secret_key_ref
        env_var = format_env_var_name(pipeline.name, ref.namespace, ref.name, ref.key)
        found[env_var] = FieldDescriptor(
            env_var_name=env_var,
            secret_namespace=ref.namespace,
            secret_name=ref.name,
            secret_key=ref.key,
        )
    return [found[k] for k in sorted(found)]


def lookup_tls_refs(pipeline: LogPipeline) -> List[TLSFileDescriptor]:
    """TLS material to mount at the paths the compiled output points at."""
    if not pipeline.output.is_http_defined():
        return []
    tls = pipeline.output.http.tls
    name = pipeline.name
    refs = []
    for template, value in ((TLS_CA_PATH, tls.ca), (TLS_CERT_PATH, tls.cert), (TLS_KEY_PATH, tls.key)):
        if value is not None and value.is_defined():
            refs.append(TLSFileDescriptor(path=template.format(name=name), source=value))
    return refs

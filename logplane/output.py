import logging
from typing import Iterable, Mapping

from logplane.builder import new_output_section_builder, parse_multiline
from logplane.envvar import format_env_var_name
from logplane.models import HTTPOutput, LogPipeline, LokiOutput, OutputKind, PipelineDefaults, ValueType

logger = logging.getLogger(__name__)

# Considering Fluent Bit's exponential back-off and jitter with the default scheduler.base
# and scheduler.cap, 300 retries cover about 3 days. Unlimited retries would keep
# malformed logs in the buffer forever.
RETRY_LIMIT = "300"

DEFAULT_HTTP_PORT = "443"
DEFAULT_HTTP_FORMAT = "json"

TLS_DIR = "/fluent-bit/tls"
TLS_CA_PATH = TLS_DIR + "/{name}-ca.crt"
TLS_CERT_PATH = TLS_DIR + "/{name}-cert.crt"
TLS_KEY_PATH = TLS_DIR + "/{name}-key.key"

LOKI_LABEL_MAP_PATH = "/fluent-bit/etc/loki-labelmap.json"


def create_output_section(pipeline: LogPipeline, defaults: PipelineDefaults) -> str:
    """
    Compiles the output of a pipeline into a Fluent Bit [OUTPUT] section.
    Returns an empty string if no output is defined.
    """
    output = pipeline.output
    kind = output.kind
    logger.debug("Compiling %s output for pipeline %s", kind.value, pipeline.name)

    if kind == OutputKind.CUSTOM:
        return generate_custom_output(output.custom, defaults.fs_buffer_limit, pipeline.name)
    if kind == OutputKind.HTTP:
        return generate_http_output(output.http, defaults.fs_buffer_limit, pipeline.name)
    if kind == OutputKind.LOKI:
        return generate_loki_output(output.loki, defaults.fs_buffer_limit, pipeline.name)
    return ""


def generate_custom_output(custom: str, fs_buffer_limit: str, name: str) -> str:
    sb = new_output_section_builder()
    params = parse_multiline(custom)

    output_name = ""
    name_param = params.get_by_key("name")
    if name_param is not None:
        output_name = name_param.value
    alias_present = params.contains_key("alias")

    for p in params:
        sb.add_config_param(p.key, p.value)
    if not alias_present:
        sb.add_config_param("alias", f"{name}-{output_name}")

    # Operator-owned keys are appended even if the custom text sets them too
    sb.add_config_param("match", f"{name}.*")
    sb.add_config_param("storage.total_limit_size", fs_buffer_limit)
    sb.add_config_param("retry_limit", RETRY_LIMIT)
    return sb.build()


def generate_http_output(http: HTTPOutput, fs_buffer_limit: str, name: str) -> str:
    sb = new_output_section_builder()
    sb.add_config_param("name", "http")
    sb.add_config_param("allow_duplicated_headers", "true")
    sb.add_config_param("match", f"{name}.*")
    sb.add_config_param("alias", f"{name}-http")
    sb.add_config_param("storage.total_limit_size", fs_buffer_limit)
    sb.add_config_param("retry_limit", RETRY_LIMIT)
    sb.add_if_not_empty("uri", http.uri)
    sb.add_if_not_empty("compress", http.compress)
    sb.add_if_not_empty_or_default("port", http.port, DEFAULT_HTTP_PORT)
    sb.add_if_not_empty_or_default("format", http.format, DEFAULT_HTTP_FORMAT)

    if http.host.is_defined():
        sb.add_config_param("host", resolve_value(http.host, name))
    if http.password.is_defined():
        sb.add_config_param("http_passwd", resolve_value(http.password, name))
    if http.user.is_defined():
        sb.add_config_param("http_user", resolve_value(http.user, name))

    tls = http.tls
    sb.add_config_param("tls", "off" if tls.disabled else "on")
    sb.add_config_param("tls.verify", "off" if tls.skip_certificate_validation else "on")
    if tls.ca is not None and tls.ca.is_defined():
        sb.add_config_param("tls.ca_file", TLS_CA_PATH.format(name=name))
    if tls.cert is not None and tls.cert.is_defined():
        sb.add_config_param("tls.crt_file", TLS_CERT_PATH.format(name=name))
    if tls.key is not None and tls.key.is_defined():
        sb.add_config_param("tls.key_file", TLS_KEY_PATH.format(name=name))

    return sb.build()


def generate_loki_output(loki: LokiOutput, fs_buffer_limit: str, name: str) -> str:
    sb = new_output_section_builder()
    sb.add_config_param("labelMapPath", LOKI_LABEL_MAP_PATH)
    sb.add_config_param("loglevel", "warn")
    sb.add_config_param("lineformat", "json")
    sb.add_config_param("match", f"{name}.*")
    sb.add_config_param("storage.total_limit_size", fs_buffer_limit)
    sb.add_config_param("retry_limit", RETRY_LIMIT)
    sb.add_config_param("name", "grafana-loki")
    sb.add_config_param("alias", f"{name}-grafana-loki")
    sb.add_config_param("url", resolve_value(loki.url, name))
    if loki.labels:
        sb.add_config_param("labels", concatenate_labels(loki.labels))
    if loki.remove_keys:
        sb.add_config_param("removeKeys", ", ".join(loki.remove_keys))
    return sb.build()


def concatenate_labels(labels: Mapping[str, str]) -> str:
    pairs = [f'{k}="{labels[k]}"' for k in sorted(labels)]
    return "{" + ", ".join(pairs) + "}"


def resolve_value(value: ValueType, pipeline_name: str) -> str:
    """Literal value if set, otherwise a ${ENV_VAR} placeholder for the referenced secret."""
    if value.value != "":
        return value.value
    if value.value_from is not None and value.value_from.is_secret_key_ref():
        ref = value.value_from.secret_key_ref
        return "${" + format_env_var_name(pipeline_name, ref.namespace, ref.name, ref.key) + "}"
    return ""


def compile_config(pipelines: Iterable[LogPipeline], defaults: PipelineDefaults) -> str:
    """Joins the output sections of all pipelines, ordered by pipeline name."""
    sections = []
    for pipeline in sorted(pipelines, key=lambda p: p.name):
        section = create_output_section(pipeline, defaults)
        if section:
            sections.append(section)
    return "".join(sections)

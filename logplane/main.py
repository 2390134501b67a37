from fastapi import FastAPI, HTTPException
from fastapi.responses import PlainTextResponse
import redis
import logging
from typing import Dict, List

from logplane import config
from logplane.models import LogPipeline, OutputKind
from logplane.output import compile_config, create_output_section
from logplane.secretref import FieldDescriptor, TLSFileDescriptor, lookup_secret_refs, lookup_tls_refs

config.configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Logplane Control Plane")

# Redis Client
r = redis.Redis(host=config.REDIS_HOST, port=config.REDIS_PORT, decode_responses=True)

# In-memory store for the prototype, keyed by pipeline name
current_pipelines: Dict[str, LogPipeline] = {}


def _get_pipeline(name: str) -> LogPipeline:
    pipeline = current_pipelines.get(name)
    if pipeline is None:
        raise HTTPException(status_code=404, detail=f"Pipeline {name} not found")
    return pipeline


@app.get("/")
def health():
    return {"status": "ok", "service": "logplane-control-plane"}


@app.get("/pipelines", response_model=List[LogPipeline])
def get_pipelines():
    return list(current_pipelines.values())


@app.post("/pipelines")
def add_pipeline(pipeline: LogPipeline):
    if pipeline.name in current_pipelines:
        raise HTTPException(status_code=400, detail=f"Pipeline {pipeline.name} already exists")
    current_pipelines[pipeline.name] = pipeline
    return {"status": "added", "pipeline": pipeline}


@app.put("/pipelines/{name}")
def replace_pipeline(name: str, pipeline: LogPipeline):
    if pipeline.name != name:
        raise HTTPException(status_code=400, detail=f"Pipeline name {pipeline.name} does not match {name}")
    _get_pipeline(name)
    current_pipelines[name] = pipeline
    return {"status": "replaced", "pipeline": pipeline}


@app.delete("/pipelines/{name}")
def delete_pipeline(name: str):
    _get_pipeline(name)
    del current_pipelines[name]
    return {"status": "deleted", "name": name}


@app.get("/pipelines/{name}/output", response_class=PlainTextResponse)
def get_pipeline_output(name: str):
    pipeline = _get_pipeline(name)
    return create_output_section(pipeline, config.load_defaults())


@app.get("/pipelines/{name}/secrets", response_model=List[FieldDescriptor])
def get_pipeline_secrets(name: str):
    return lookup_secret_refs(_get_pipeline(name))


@app.get("/pipelines/{name}/tls", response_model=List[TLSFileDescriptor])
def get_pipeline_tls(name: str):
    return lookup_tls_refs(_get_pipeline(name))


@app.post("/publish")
def publish_config():
    """
    Compiles the output sections of all pipelines and pushes them to Redis.
    """
    # 1. Compile
    pipelines = list(current_pipelines.values())
    data = compile_config(pipelines, config.load_defaults())
    compiled = sorted(p.name for p in pipelines if p.output.kind != OutputKind.UNSET)

    # 2. Save to Redis (Persist) and notify listeners (Hot Reload)
    try:
        r.set(config.REDIS_KEY, data)
        subscribers = r.publish(config.REDIS_CHANNEL, "RELOAD")
    except redis.exceptions.RedisError as e:
        logger.error("Publishing config failed: %s", e)
        raise HTTPException(status_code=503, detail=f"Config store unavailable: {e}")

    logger.info("Published config for %d pipeline(s) to %d subscriber(s)", len(compiled), subscribers)
    return {
        "status": "published",
        "config": data,
        "pipelines": compiled,
        "subscribers_notified": subscribers,
    }

"""
Service context for log lines.

Identifies which service instance produced a log line when several replicas
ship to the same sink.
"""

import os
from functools import lru_cache


@lru_cache(maxsize=1)
def get_service_context() -> str:
    service_name = os.getenv('SERVICE_NAME', 'booking-saga')
    deploy_env = os.getenv('DEPLOY_ENV', 'local_dev')
    # Container hostname when orchestrated, pid otherwise
    instance = os.getenv('HOSTNAME') or str(os.getpid())
    return f'{service_name}@{deploy_env}:{instance[:12]}'

# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 flexcontrol developers

"""
Dispatch of retrieval requests to an archive backend.

Two backends are available: MARS through the ECMWF web API
(``ecmwf-api-client``) and Polytope (``polytope-client``). Requests are sent
one at a time; failures are raised, never retried.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Type

from flexcontrol.core.exceptions import RetrievalError, flexcontrol_error_handler
from flexcontrol.core.mixins import LoggingMixin

from .manifest import RetrievalRequest

try:
    from ecmwfapi import ECMWFService
    HAS_ECMWFAPI = True
except ImportError:
    HAS_ECMWFAPI = False

try:
    from polytope.api import Client as PolytopeClient
    HAS_POLYTOPE = True
except ImportError:
    HAS_POLYTOPE = False


class RetrievalBackend(LoggingMixin, ABC):
    """A service able to fetch one archive request into its target file."""

    name: str = ''
    available: bool = True
    install_hint: str = ''

    def __init__(self, logger: Optional[logging.Logger] = None, **options):
        if logger is not None:
            self.logger = logger
        self.options = options

    @abstractmethod
    def fetch(self, request: RetrievalRequest) -> None:
        """Fetch ``request`` into the file named by its ``target`` field."""

    def retrieve(self, request: RetrievalRequest) -> None:
        if not self.available:
            raise ImportError(self.install_hint)
        label = request.row_number or '?'
        self.logger.info(f"Retrieving request {label} via {self.name} into {request.target}")
        with flexcontrol_error_handler(
            f"{self.name} retrieval of request {label}", self.logger, error_type=RetrievalError
        ):
            self.fetch(request)


class RetrievalRegistry:
    """
    Registry of retrieval backends.

    Backends are registered using the @register decorator and retrieved
    using get_backend(). All keys are normalized to lowercase.
    """

    _backends: Dict[str, Type[RetrievalBackend]] = {}

    @classmethod
    def register(cls, name: str):
        def decorator(backend_class: Type[RetrievalBackend]) -> Type[RetrievalBackend]:
            backend_class.name = name.lower()
            cls._backends[name.lower()] = backend_class
            return backend_class
        return decorator

    @classmethod
    def get_backend(cls, name: str, logger: Optional[logging.Logger] = None,
                    **options) -> RetrievalBackend:
        """
        Instantiate a registered backend.

        Raises:
            RetrievalError: If no backend is registered under ``name``
        """
        backend_class = cls._backends.get(name.lower())
        if backend_class is None:
            available = ', '.join(sorted(cls._backends))
            raise RetrievalError(f"Unknown retrieval backend: '{name}'. Available: {available}")
        return backend_class(logger=logger, **options)

    @classmethod
    def list_backends(cls) -> List[str]:
        return sorted(cls._backends)


def _split_target(request: RetrievalRequest):
    """Request fields without ``target``, and the target path."""
    fields = request.as_dict()
    target = fields.pop('target', None)
    if target is None:
        raise RetrievalError(f"Request {request.row_number or '?'} has no target field")
    return fields, target.strip('"')


@RetrievalRegistry.register('mars')
class MarsBackend(RetrievalBackend):
    """MARS retrieval through the ECMWF web API."""

    available = HAS_ECMWFAPI
    install_hint = (
        "ecmwf-api-client package is required for MARS retrievals. "
        "Install it with 'pip install ecmwf-api-client'."
    )

    def fetch(self, request: RetrievalRequest) -> None:
        fields, target = _split_target(request)
        server = ECMWFService('mars')
        server.execute(fields, target)


@RetrievalRegistry.register('polytope')
class PolytopeBackend(RetrievalBackend):
    """Retrieval through an ECMWF Polytope service."""

    available = HAS_POLYTOPE
    install_hint = (
        "polytope-client package is required for Polytope retrievals. "
        "Install it with 'pip install polytope-client'."
    )

    def fetch(self, request: RetrievalRequest) -> None:
        fields, target = _split_target(request)
        address = self.options.get('address', 'polytope.ecmwf.int')
        collection = self.options.get('collection', 'ecmwf-mars')
        client = PolytopeClient(address=address)
        client.retrieve(collection, fields, target)


def retrieve(
    requests: Iterable[RetrievalRequest],
    polytope: bool = False,
    logger: Optional[logging.Logger] = None,
    **options,
) -> int:
    """
    Fetch every request in order.

    Args:
        requests: Requests to fetch
        polytope: Use the Polytope backend instead of MARS
        logger: Optional logger passed to the backend
        **options: Backend options (``address``, ``collection`` for Polytope)

    Returns:
        Number of requests fetched

    Raises:
        RetrievalError: On the first request that fails
    """
    backend = RetrievalRegistry.get_backend('polytope' if polytope else 'mars', logger=logger, **options)
    count = 0
    for request in requests:
        backend.retrieve(request)
        count += 1
    backend.logger.info(f"Retrieved {count} requests via {backend.name}")
    return count

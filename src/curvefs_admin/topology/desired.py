"""
Desired topology file parsing.

The operator describes the cluster layout in a JSON file:

    {
        "servers": [
            {
                "name": "server1",
                "internalip": "10.0.0.1",
                "internalport": 16701,
                "externalip": "10.0.0.1",
                "externalport": 16701,
                "zone": "zone1",
                "pool": "pool1"
            }
        ],
        "pools": [
            {"name": "pool1", "replicasnum": 3, "copysetnum": 100, "zonenum": 3}
        ]
    }

Zones are not listed; they are implied by the servers.

Every problem in the file (schema errors, servers naming undeclared pools)
is collected and raised as one ConfigurationError.
"""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from curvefs_admin.exceptions import ConfigurationError
from curvefs_admin.types import DesiredTopology, PoolSpec, ServerSpec


class ServerEntry(BaseModel):
    """One server entry of the topology file."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    internalip: str
    internalport: int = Field(ge=0, le=65535)
    externalip: str
    externalport: int = Field(ge=0, le=65535)
    zone: str = Field(min_length=1)
    pool: str = Field(min_length=1)

    def to_spec(self) -> ServerSpec:
        return ServerSpec(
            host_name=self.name,
            zone_name=self.zone,
            pool_name=self.pool,
            internal_ip=self.internalip,
            internal_port=self.internalport,
            external_ip=self.externalip,
            external_port=self.externalport,
        )


class PoolEntry(BaseModel):
    """One pool entry of the topology file."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    replicasnum: int = Field(default=3, ge=1)
    copysetnum: int = Field(default=100, ge=1)
    zonenum: int = Field(default=3, ge=1)

    def to_spec(self) -> PoolSpec:
        return PoolSpec(
            name=self.name,
            replicas=self.replicasnum,
            copysets=self.copysetnum,
            zones=self.zonenum,
        )


class TopologyFile(BaseModel):
    """Root of the topology file."""

    servers: list[ServerEntry] = Field(default_factory=list)
    pools: list[PoolEntry] = Field(default_factory=list)


def _format_validation_error(e: ValidationError) -> list[str]:
    return [
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in e.errors()
    ]


def parse_desired_topology(data: Any) -> DesiredTopology:
    """
    Build a DesiredTopology from decoded JSON.

    Raises:
        ConfigurationError: On schema errors or servers in undeclared pools.
    """
    try:
        parsed = TopologyFile.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(_format_validation_error(e)) from e

    declared = {pool.name for pool in parsed.pools}
    problems = [
        f"server {server.name} references undeclared pool {server.pool}"
        for server in parsed.servers
        if server.pool not in declared
    ]
    if problems:
        raise ConfigurationError(problems)

    return DesiredTopology(
        servers=tuple(server.to_spec() for server in parsed.servers),
        pools=tuple(pool.to_spec() for pool in parsed.pools),
    )


def load_desired_topology(path: Path) -> DesiredTopology:
    """
    Read and parse a topology file.

    Raises:
        ConfigurationError: If the file cannot be read, is not JSON, or is invalid.
    """
    try:
        data = json.loads(path.read_text())
    except OSError as e:
        raise ConfigurationError([f"cannot read {path}: {e}"]) from e
    except json.JSONDecodeError as e:
        raise ConfigurationError([f"{path} is not valid JSON: {e}"]) from e
    return parse_desired_topology(data)

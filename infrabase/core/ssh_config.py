# infrabase/core/ssh_config.py
"""
SSH client configuration rendering
"""

from typing import Iterable, List

from .resolver import ResolvedEndpoint


def render_host_block(endpoint: ResolvedEndpoint) -> str:
    machine = endpoint.machine
    lines = [
        f"# {machine.owner}'s",
        f"Host {machine.hostname}",
        f"  HostName {endpoint.address}",
        f"  Port {endpoint.port}",
    ]
    if machine.ssh_user:
        lines.append(f"  User {machine.ssh_user}")
    return "\n".join(lines) + "\n"


def render_ssh_config(for_machine: str, endpoints: Iterable[ResolvedEndpoint]) -> str:
    """~/.ssh/config listing every machine with a resolved endpoint"""
    parts: List[str] = [f"# infrabase-generated SSH config for {for_machine}\n"]
    parts.extend(render_host_block(endpoint) for endpoint in endpoints)
    return "\n".join(parts)

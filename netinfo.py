import os
import socket
import struct
import fcntl

LOOPBACK_IPV4 = "127.0.0.1"
WILDCARD_HOSTS = ("0.0.0.0", "::")

SIOCGIFADDR = 0x8915
SYS_CLASS_NET = "/sys/class/net"

# Physical NICs are what other LAN devices can reach; bridges and veths are not.
PHYSICAL_PREFIXES = ("eth", "en", "wl")
VIRTUAL_PREFIXES = ("docker", "br-", "veth", "virbr")


def _get_iface_ipv4_linux(ifname: str) -> str | None:
    """Return the IPv4 address for an interface name on Linux, or None if unavailable."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            ifreq = struct.pack("256s", ifname.encode("utf-8")[:15])
            res = fcntl.ioctl(s.fileno(), SIOCGIFADDR, ifreq)
        return socket.inet_ntoa(res[20:24])
    except OSError:
        return None


def _interface_names() -> list[str]:
    return os.listdir(SYS_CLASS_NET)


def _interface_rank(ifname: str) -> int:
    if ifname.startswith(PHYSICAL_PREFIXES):
        return 0
    if ifname.startswith(VIRTUAL_PREFIXES):
        return 2
    return 1


def list_interface_ipv4s() -> list[tuple[str, str]]:
    """(interface, address) pairs for every non-loopback IPv4 interface.

    Physical NICs come first, then other interfaces, then virtual bridges;
    names break ties.
    """
    out: list[tuple[str, str]] = []
    try:
        names = sorted(_interface_names(), key=lambda n: (_interface_rank(n), n))
    except OSError:
        return out
    for ifname in names:
        if ifname == "lo":
            continue
        ip = _get_iface_ipv4_linux(ifname)
        if ip and not ip.startswith("127."):
            out.append((ifname, ip))
    return out


def lan_ipv4() -> str:
    """First non-loopback IPv4 address bound to a local interface, else loopback."""
    found = list_interface_ipv4s()
    if found:
        return found[0][1]
    return LOOPBACK_IPV4


def advertised_address(bound_host: str) -> str:
    # A server bound to one address is only reachable there.
    if bound_host not in WILDCARD_HOSTS:
        return bound_host
    return lan_ipv4()


def url_host(address: str) -> str:
    """Host part for a URL; IPv6 literals need brackets."""
    if ":" in address and not address.startswith("["):
        return f"[{address}]"
    return address

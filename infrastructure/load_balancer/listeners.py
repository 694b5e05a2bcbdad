"""
Listener topologies for the web server load balancer.

Two variants share the same target wiring:
- http: a single listener on port 80
- https: a certificate-bound listener on port 443, plus a port 80 listener
  permanently redirecting to it

Each function returns the listener that forwards traffic to the targets.
"""

from typing import Optional

from aws_cdk import (
    aws_certificatemanager as acm,
    aws_elasticloadbalancingv2 as elbv2,
)

from infrastructure.config import LISTENER_MODE_HTTP, LISTENER_MODE_HTTPS

HTTP_PORT = 80
HTTPS_PORT = 443


def add_http_listener(
    load_balancer: elbv2.ApplicationLoadBalancer,
) -> elbv2.ApplicationListener:
    """Add a plain HTTP listener and return it."""
    return load_balancer.add_listener(
        "HttpListener",
        port=HTTP_PORT,
        open=True,
    )


def add_https_listeners(
    load_balancer: elbv2.ApplicationLoadBalancer,
    certificate: acm.ICertificate,
) -> elbv2.ApplicationListener:
    """
    Add an HTTPS listener and an HTTP to HTTPS redirect listener.

    Args:
        load_balancer: Load balancer to attach the listeners to.
        certificate: ACM certificate served on the HTTPS listener.

    Returns:
        The HTTPS listener.
    """
    https_listener = load_balancer.add_listener(
        "HttpsListener",
        port=HTTPS_PORT,
        open=True,
        certificates=[elbv2.ListenerCertificate.from_certificate_manager(certificate)],
    )

    # 301 redirect from port 80 to 443
    load_balancer.add_listener(
        "RedirectListener",
        port=HTTP_PORT,
        open=True,
        default_action=elbv2.ListenerAction.redirect(
            protocol="HTTPS",
            port=str(HTTPS_PORT),
            permanent=True,
        ),
    )

    return https_listener


def add_listeners(
    load_balancer: elbv2.ApplicationLoadBalancer,
    mode: str,
    certificate: Optional[acm.ICertificate] = None,
) -> elbv2.ApplicationListener:
    """
    Add the listeners for the given topology and return the forwarding one.

    Raises:
        ValueError: For an unknown mode, or https without a certificate.
    """
    if mode == LISTENER_MODE_HTTP:
        return add_http_listener(load_balancer)
    if mode == LISTENER_MODE_HTTPS:
        if certificate is None:
            raise ValueError("https listener mode requires a certificate")
        return add_https_listeners(load_balancer, certificate)
    raise ValueError(
        f"Unknown listener mode {mode!r}, expected "
        f"'{LISTENER_MODE_HTTP}' or '{LISTENER_MODE_HTTPS}'"
    )

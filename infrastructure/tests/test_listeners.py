"""
Unit tests for load balancer listener topologies.
"""

import aws_cdk as cdk
import pytest
from aws_cdk import (
    aws_certificatemanager as acm,
    aws_ec2 as ec2,
    aws_elasticloadbalancingv2 as elbv2,
)
from aws_cdk.assertions import Match, Template

from infrastructure.load_balancer.listeners import (
    add_http_listener,
    add_https_listeners,
    add_listeners,
)

CERTIFICATE_ARN = "arn:aws:acm:us-east-1:123456789012:certificate/11111111-2222-3333-4444-555555555555"


def _load_balancer():
    stack = cdk.Stack(cdk.App(), "ListenerTestStack")
    vpc = ec2.Vpc(stack, "Vpc", max_azs=2, nat_gateways=0)
    load_balancer = elbv2.ApplicationLoadBalancer(
        stack, "LoadBalancer", vpc=vpc, internet_facing=True
    )
    return stack, load_balancer


def _certificate(stack):
    return acm.Certificate.from_certificate_arn(stack, "Certificate", CERTIFICATE_ARN)


def _respond_ok(listener):
    listener.add_action(
        "Default",
        action=elbv2.ListenerAction.fixed_response(200, message_body="ok"),
    )


class TestListeners:
    """Test the http and https listener variants."""

    def test_http_listener(self):
        """Test a single open listener on port 80."""
        stack, load_balancer = _load_balancer()
        listener = add_http_listener(load_balancer)
        _respond_ok(listener)

        template = Template.from_stack(stack)
        template.resource_count_is("AWS::ElasticLoadBalancingV2::Listener", 1)
        template.has_resource_properties(
            "AWS::ElasticLoadBalancingV2::Listener",
            {"Port": 80, "Protocol": "HTTP"},
        )
        template.has_resource_properties(
            "AWS::EC2::SecurityGroup",
            {
                "SecurityGroupIngress": Match.array_with(
                    [Match.object_like({"CidrIp": "0.0.0.0/0", "FromPort": 80})]
                )
            },
        )

    def test_https_listeners(self):
        """Test an HTTPS listener with the certificate plus a permanent redirect."""
        stack, load_balancer = _load_balancer()
        listener = add_https_listeners(load_balancer, _certificate(stack))
        _respond_ok(listener)

        template = Template.from_stack(stack)
        template.resource_count_is("AWS::ElasticLoadBalancingV2::Listener", 2)
        template.has_resource_properties(
            "AWS::ElasticLoadBalancingV2::Listener",
            {
                "Port": 443,
                "Protocol": "HTTPS",
                "Certificates": [{"CertificateArn": CERTIFICATE_ARN}],
            },
        )
        template.has_resource_properties(
            "AWS::ElasticLoadBalancingV2::Listener",
            {
                "Port": 80,
                "DefaultActions": [
                    Match.object_like(
                        {
                            "Type": "redirect",
                            "RedirectConfig": Match.object_like(
                                {"Port": "443", "Protocol": "HTTPS", "StatusCode": "HTTP_301"}
                            ),
                        }
                    )
                ],
            },
        )

    def test_add_listeners_returns_forwarding_listener(self):
        """Test dispatch returns the listener that should receive targets."""
        stack, load_balancer = _load_balancer()
        listener = add_listeners(load_balancer, "https", certificate=_certificate(stack))

        assert listener.node.id == "HttpsListener"

    def test_add_listeners_http(self):
        _, load_balancer = _load_balancer()
        listener = add_listeners(load_balancer, "http")

        assert listener.node.id == "HttpListener"

    def test_add_listeners_https_requires_certificate(self):
        _, load_balancer = _load_balancer()

        with pytest.raises(ValueError) as exc_info:
            add_listeners(load_balancer, "https")

        assert "requires a certificate" in str(exc_info.value)

    def test_add_listeners_unknown_mode(self):
        _, load_balancer = _load_balancer()

        with pytest.raises(ValueError) as exc_info:
            add_listeners(load_balancer, "tcp")

        assert "Unknown listener mode" in str(exc_info.value)

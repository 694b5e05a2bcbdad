"""
Certificate and alias record for the web server load balancer.
"""

from aws_cdk import (
    aws_certificatemanager as acm,
    aws_elasticloadbalancingv2 as elbv2,
    aws_route53 as route53,
    aws_route53_targets as route53_targets,
)
from constructs import Construct


class WebDomain(Construct):
    """
    Serves the load balancer under a domain in an existing hosted zone.

    Creates:
    - a DNS-validated ACM certificate for the domain
    - an A alias record pointing the domain at the load balancer
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        hosted_zone_id: str,
        zone_name: str,
        dns_name: str,
        load_balancer: elbv2.IApplicationLoadBalancer,
    ) -> None:
        super().__init__(scope, construct_id)

        # Import the existing zone, no lookup call needed
        hosted_zone = route53.HostedZone.from_hosted_zone_attributes(
            self,
            "HostedZone",
            hosted_zone_id=hosted_zone_id,
            zone_name=zone_name,
        )

        certificate = acm.Certificate(
            self,
            "Certificate",
            domain_name=dns_name,
            validation=acm.CertificateValidation.from_dns(hosted_zone),
        )

        record = route53.ARecord(
            self,
            "AliasRecord",
            zone=hosted_zone,
            record_name=dns_name,
            target=route53.RecordTarget.from_alias(
                route53_targets.LoadBalancerTarget(load_balancer)
            ),
        )

        self.hosted_zone = hosted_zone
        self.certificate = certificate
        self.record = record

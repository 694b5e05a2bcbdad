"""
Web Server Stack: auto scaling web servers behind an application load balancer.

Runs in the account's default VPC. When the DNS flag is set, the load
balancer is served over HTTPS with an ACM certificate and a Route 53 alias
record, and plain HTTP is redirected to HTTPS.
"""

from aws_cdk import (
    Stack,
    Tags,
    CfnOutput,
    aws_autoscaling as autoscaling,
    aws_ec2 as ec2,
    aws_elasticloadbalancingv2 as elbv2,
    aws_iam as iam,
)
from constructs import Construct

from infrastructure.config import StackConfig
from infrastructure.dns.web_domain import WebDomain
from infrastructure.load_balancer.listeners import HTTP_PORT, HTTPS_PORT, add_listeners
from infrastructure.utils.logging_utils import (
    log_section_start,
    log_section_complete,
    log_progress,
)

USER_DATA_COMMANDS = [
    "dnf update -y",
    "dnf install -y httpd",
    "systemctl start httpd",
    "systemctl enable httpd",
    'echo "<h1>Hello World from $(hostname -f)</h1>" > /var/www/html/index.html',
]


class WebServerStack(Stack):
    """
    Stack that declares the web server fleet and its load balancer.

    Creates:
    - Security group, instance role and SSM VPC endpoints
    - Launch template and auto scaling group (min 1, max 3, desired 1)
    - Internet-facing application load balancer and target group
    - HTTP listener, or HTTPS listener plus redirect, certificate and DNS record
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        config: StackConfig,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        section = f"Assembling {construct_id}"
        log_section_start(section)

        # Tag all resources in this stack
        log_progress(section, f"Stack settings: {config.as_dict()}")
        for key, value in config.tags:
            Tags.of(self).add(key, value)

        # Existing default VPC, the lookup fails synth if there is none
        vpc = ec2.Vpc.from_lookup(self, "ExistingVpc", is_default=True)
        log_progress(section, f"Current VPC ID: {vpc.vpc_id}")
        log_progress(section, f"Current VPC CIDR: {vpc.vpc_cidr_block}")

        subnets = vpc.select_subnets()
        for index, subnet_id in enumerate(subnets.subnet_ids, start=1):
            log_progress(section, f"Subnet {index} ID: {subnet_id}")

        # Security group for the web servers
        security_group = ec2.SecurityGroup(
            self,
            "WebServerSecurityGroup",
            vpc=vpc,
            security_group_name="WebServerSecurityGroup",
            description="Security group for the web server instances",
            allow_all_outbound=True,
        )
        security_group.add_ingress_rule(
            peer=ec2.Peer.any_ipv4(),
            connection=ec2.Port.tcp(HTTPS_PORT),
            description="Allow HTTPS access",
        )
        security_group.add_ingress_rule(
            peer=ec2.Peer.any_ipv4(),
            connection=ec2.Port.tcp(HTTP_PORT),
            description="Allow HTTP access",
        )

        # Instance role with Session Manager access
        role = iam.Role(
            self,
            "WebServerInstanceRole",
            role_name="WebServerInstanceRole",
            assumed_by=iam.ServicePrincipal("ec2.amazonaws.com"),
            description="Allows EC2 instances to call AWS services on your behalf",
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name(
                    "AmazonSSMManagedInstanceCore"
                )
            ],
        )

        # VPC endpoints for Session Manager
        for endpoint_id, service in (
            ("SsmVpcEndpoint", ec2.InterfaceVpcEndpointAwsService.SSM),
            ("Ec2MessagesVpcEndpoint", ec2.InterfaceVpcEndpointAwsService.EC2_MESSAGES),
            ("SsmMessagesVpcEndpoint", ec2.InterfaceVpcEndpointAwsService.SSM_MESSAGES),
        ):
            ec2.InterfaceVpcEndpoint(self, endpoint_id, vpc=vpc, service=service)

        user_data = ec2.UserData.for_linux()
        user_data.add_commands(*USER_DATA_COMMANDS)

        launch_template = ec2.LaunchTemplate(
            self,
            "WebServerLaunchTemplate",
            machine_image=ec2.MachineImage.latest_amazon_linux2023(),
            instance_type=ec2.InstanceType("t2.micro"),
            user_data=user_data,
            security_group=security_group,
            role=role,
            associate_public_ip_address=True,
        )

        # Capacity is managed by the scaling controller within these bounds
        auto_scaling_group = autoscaling.AutoScalingGroup(
            self,
            "WebServerAutoScalingGroup",
            vpc=vpc,
            vpc_subnets=ec2.SubnetSelection(subnets=subnets.subnets),
            launch_template=launch_template,
            min_capacity=1,
            max_capacity=3,
            desired_capacity=1,
        )

        load_balancer = elbv2.ApplicationLoadBalancer(
            self,
            "WebLoadBalancer",
            vpc=vpc,
            internet_facing=True,
        )

        target_group = elbv2.ApplicationTargetGroup(
            self,
            "WebTargetGroup",
            vpc=vpc,
            port=HTTP_PORT,
            protocol=elbv2.ApplicationProtocol.HTTP,
            target_type=elbv2.TargetType.INSTANCE,
        )

        # Certificate and alias record only exist for the https topology
        domain = None
        if config.create_dns_record:
            domain = WebDomain(
                self,
                "WebDomain",
                hosted_zone_id=config.hosted_zone_id,
                zone_name=config.zone_name,
                dns_name=config.dns_name,
                load_balancer=load_balancer,
            )

        log_progress(section, f"Listener mode: {config.listener_mode}")
        listener = add_listeners(
            load_balancer,
            config.listener_mode,
            certificate=domain.certificate if domain is not None else None,
        )

        # Same wiring for both topologies
        target_group.add_target(auto_scaling_group)
        listener.add_target_groups("WebTargetGroup", target_groups=[target_group])

        # Outputs
        CfnOutput(
            self,
            "LoadBalancerDNS",
            value=load_balancer.load_balancer_dns_name,
            description="DNS name of the application load balancer",
        )

        CfnOutput(
            self,
            "LoadBalancerARN",
            value=load_balancer.load_balancer_arn,
            description="ARN of the application load balancer",
        )

        CfnOutput(
            self,
            "TargetGroupARN",
            value=target_group.target_group_arn,
            description="ARN of the web server target group",
        )

        CfnOutput(
            self,
            "AutoScalingGroupARN",
            value=auto_scaling_group.auto_scaling_group_arn,
            description="ARN of the web server auto scaling group",
        )

        CfnOutput(
            self,
            "AutoScalingGroupName",
            value=auto_scaling_group.auto_scaling_group_name,
            description="Name of the web server auto scaling group",
        )

        # Store references for callers
        self.vpc = vpc
        self.security_group = security_group
        self.role = role
        self.launch_template = launch_template
        self.auto_scaling_group = auto_scaling_group
        self.load_balancer = load_balancer
        self.target_group = target_group
        self.listener = listener
        self.domain = domain

        log_section_complete(section, f"{config.listener_mode} topology")

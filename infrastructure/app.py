#!/usr/bin/env python3
"""
AWS CDK App for the web server auto scaling stack
"""

from typing import Optional

import aws_cdk as cdk

from infrastructure.config import StackConfig, get_cdk_environment, load_environment_file
from infrastructure.utils.logging_utils import log_error, log_warning
from infrastructure.web_server.web_server_stack import WebServerStack

STACK_ID = "WebServerAutoScalingStack"


def build_app(config: StackConfig, env: Optional[cdk.Environment] = None) -> cdk.App:
    """
    Create the CDK app holding the web server stack.

    Args:
        config: Stack settings.
        env: Account/region the stack is pinned to. Defaults to the
            environment variables.
    """
    app = cdk.App()
    WebServerStack(
        app,
        STACK_ID,
        config=config,
        env=env or get_cdk_environment(),
        description="Auto scaling web servers behind an application load balancer",
    )
    return app


def main() -> None:
    # Load environment variables from .env.<ENVIRONMENT> in the project root
    load_environment_file()

    try:
        config = StackConfig.from_env()
    except ValueError as e:
        log_error("configuration", e)
        raise

    missing = config.missing_dns_settings()
    if missing:
        log_warning(
            "configuration",
            f"CREATE_DNS_RECORD is true but empty: {', '.join(missing)}; "
            "the certificate and DNS record will fail to deploy",
        )

    build_app(config).synth()


if __name__ == "__main__":
    main()

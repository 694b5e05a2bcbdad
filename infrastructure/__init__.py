"""
CDK infrastructure for the web server auto scaling stack.

Declares an auto scaling group of web servers in the default VPC behind an
application load balancer, optionally fronted by an ACM certificate and a
Route 53 alias record.
"""

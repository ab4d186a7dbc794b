from aws_adapter.greengrass import BotoGreengrassClient, parse_definition_arn
from aws_adapter.iot import BotoIotClient

__all__ = ["BotoGreengrassClient", "BotoIotClient", "parse_definition_arn"]

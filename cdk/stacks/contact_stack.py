from pathlib import Path
from typing import Optional, Sequence

from aws_cdk import (
    Stack,
    Duration,
    RemovalPolicy,
    aws_apigateway as apigw,
    aws_lambda as _lambda,
    aws_dynamodb as ddb,
    aws_iam as iam,
    aws_logs as logs,
)
from constructs import Construct

FUNCTIONS_DIR = Path(__file__).resolve().parents[2] / "functions"

# Public Powertools layer published by AWS in every commercial region
POWERTOOLS_LAYER_ARN = "arn:aws:lambda:{region}:017000801446:layer:AWSLambdaPowertoolsPythonV3-python312-x86_64:7"


class ContactStack(Stack):
    def __init__(self, scope: Construct, construct_id: str,
                 from_email: str,
                 to_email: str,
                 table_name: str = "contact_messages",
                 allowed_origins: Sequence[str] = ("*",),
                 functions_dir: Optional[Path] = None,
                 enable_xray: bool = True,
                 **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # Partition on the generated id, sort on the acceptance timestamp
        table = ddb.Table(self, "ContactMessages",
                          table_name=table_name,
                          partition_key=ddb.Attribute(name="id", type=ddb.AttributeType.STRING),
                          sort_key=ddb.Attribute(name="received_at", type=ddb.AttributeType.STRING),
                          billing_mode=ddb.BillingMode.PAY_PER_REQUEST,
                          point_in_time_recovery=True,
                          removal_policy=RemovalPolicy.RETAIN)

        powertools = _lambda.LayerVersion.from_layer_version_arn(
            self, "Powertools", POWERTOOLS_LAYER_ARN.format(region=self.region))

        contact_fn = _lambda.Function(self, "ContactFn",
                                      runtime=_lambda.Runtime.PYTHON_3_12,
                                      handler="contact.handler.handler",
                                      code=_lambda.Code.from_asset(str(functions_dir or FUNCTIONS_DIR)),
                                      layers=[powertools],
                                      environment={
                                          "TABLE_NAME": table.table_name,
                                          "FROM_EMAIL": from_email,
                                          "TO_EMAIL": to_email,
                                          "REGION": self.region,
                                          "ALLOWED_ORIGINS": ",".join(allowed_origins),
                                          "STORE_TIMEOUT_SECONDS": "3",
                                          "NOTIFY_TIMEOUT_SECONDS": "3",
                                          "POWERTOOLS_SERVICE_NAME": "contact",
                                      },
                                      timeout=Duration.seconds(10),
                                      tracing=_lambda.Tracing.ACTIVE if enable_xray else _lambda.Tracing.DISABLED,
                                      log_retention=logs.RetentionDays.TWO_WEEKS)

        # Insert only: the function never reads or deletes messages
        table.grant_write_data(contact_fn)
        contact_fn.add_to_role_policy(
            iam.PolicyStatement(
                actions=["ses:SendEmail", "ses:SendRawEmail"],
                resources=["*"],
            )
        )

        api = apigw.RestApi(self, "ContactApi",
                            deploy_options=apigw.StageOptions(metrics_enabled=True,
                                                              logging_level=apigw.MethodLoggingLevel.INFO,
                                                              tracing_enabled=enable_xray),
                            cloud_watch_role=True)

        # /contact
        contact = api.root.add_resource("contact")
        contact.add_cors_preflight(allow_origins=list(allowed_origins),
                                   allow_methods=["POST"])
        contact_lambda_integration = apigw.LambdaIntegration(contact_fn, proxy=True)
        contact.add_method("POST", contact_lambda_integration)

        self.table_name = table.table_name
        self.api_execute_url = f"{api.url}"

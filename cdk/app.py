#!/usr/bin/env python3
import os
import aws_cdk as cdk
from stacks.contact_stack import ContactStack

app = cdk.App()

env = cdk.Environment(
    account=os.getenv("CDK_DEFAULT_ACCOUNT"),
    region=os.getenv("CDK_DEFAULT_REGION", "ap-northeast-1")
)

sender = app.node.try_get_context("from_email") or "contact@example.com"
recipient = app.node.try_get_context("to_email") or sender
origins = app.node.try_get_context("allowed_origins") or "https://example.com,http://localhost:3000"

ContactStack(app, "ContactStack",
             env=env,
             from_email=sender,
             to_email=recipient,
             table_name="contact_messages",
             allowed_origins=[o.strip() for o in origins.split(",") if o.strip()],
             enable_xray=True)

app.synth()

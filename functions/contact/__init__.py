"""Contact form intake: validate, persist to DynamoDB, notify through SES."""

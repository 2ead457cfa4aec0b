"""
Utils package.

- Text scanning (tag extractor, envelope normalizer) never raises on
  malformed input; callers get None or an empty list instead.
- Amounts are Decimal magnitudes, dates are calendar dates (datetime.date).
- Models persisted to DynamoDB implement `to_dynamodb_item()` and
  `from_dynamodb_item(data)`.
"""

import jsonschema
import jsonschema_rs


def assert_valid(schema, value):
    validator_cls = jsonschema.validators.validator_for(schema, default=jsonschema.Draft202012Validator)
    validator_cls(schema).validate(value)


def is_valid(schema, value):
    validator_cls = jsonschema.validators.validator_for(schema, default=jsonschema.Draft202012Validator)
    return validator_cls(schema).is_valid(value)


def is_valid_rs(schema, value):
    return jsonschema_rs.Draft202012Validator(schema).is_valid(value)

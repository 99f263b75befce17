"""
Prompt assembly.

Pure functions mapping a feature and its selected options to the literal
instruction text sent to the model.  The wording lives in each feature's
handler module; this module only routes to it.
"""
import importlib

from features import FEATURES


def get_handler(feature_key: str):
    handler_name = FEATURES[feature_key]["handler"]
    return importlib.import_module(f"handlers.{handler_name}")


def build_validation_instruction(feature_key: str, options) -> str:
    rules = FEATURES[feature_key]["validation_rules"]
    return get_handler(feature_key).build_validation_prompt(options, rules)


def build_generation_instruction(feature_key: str, options) -> str:
    return get_handler(feature_key).build_generation_prompt(options)

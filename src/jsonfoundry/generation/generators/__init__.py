from __future__ import annotations

from jsonfoundry.generation.generators.array import ArrayGenerator
from jsonfoundry.generation.generators.base import ValueGenerator
from jsonfoundry.generation.generators.basic import AnyGenerator, NeverGenerator, NullGenerator
from jsonfoundry.generation.generators.boolean import BooleanGenerator
from jsonfoundry.generation.generators.composition import CompositionGenerator
from jsonfoundry.generation.generators.const import ConstGenerator
from jsonfoundry.generation.generators.enumeration import EnumGenerator
from jsonfoundry.generation.generators.integer import IntegerGenerator
from jsonfoundry.generation.generators.number import NumberGenerator
from jsonfoundry.generation.generators.objects import ObjectGenerator
from jsonfoundry.generation.generators.reference import ReferenceGenerator
from jsonfoundry.generation.generators.string import StringGenerator

__all__ = [
    "AnyGenerator",
    "ArrayGenerator",
    "BooleanGenerator",
    "CompositionGenerator",
    "ConstGenerator",
    "EnumGenerator",
    "IntegerGenerator",
    "NeverGenerator",
    "NullGenerator",
    "NumberGenerator",
    "ObjectGenerator",
    "ReferenceGenerator",
    "StringGenerator",
    "ValueGenerator",
]

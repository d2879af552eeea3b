from __future__ import annotations

import pytest

from jsonfoundry.config import FoundryConfig
from jsonfoundry.coverage.events import InstanceCoverage
from jsonfoundry.coverage.hints import HintSet
from jsonfoundry.generation.context import GenerationContext
from jsonfoundry.generation.engine import Generator
from jsonfoundry.generation.modes import Scenario

SEED = 424242


@pytest.fixture
def make_context():
    def factory(schema, *, seed=SEED, scenario=Scenario.NORMAL, max_depth=8, hints=None, coverage=None, config=None):
        return GenerationContext(
            schema,
            seed=seed,
            scenario=scenario,
            max_depth=max_depth,
            config=config,
            hints=HintSet(hints) if hints else None,
            coverage=coverage,
        )

    return factory


@pytest.fixture
def generate_many():
    def factory(schema, count=20, **options):
        config = FoundryConfig.from_options({"seed": SEED, "generate": {"count": count}, **options})
        return Generator(schema, config).generate()

    return factory


@pytest.fixture
def coverage():
    return InstanceCoverage()

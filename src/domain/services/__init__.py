"""Domain services package: bucket mutators, analysers and tax calculation."""

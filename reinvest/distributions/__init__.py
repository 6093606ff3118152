"""Distribution records: models, parsing and source loading."""

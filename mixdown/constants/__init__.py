# Language tables for mixdown-formatter

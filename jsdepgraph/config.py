"""Application-wide configuration and settings.

Uses ``pydantic-settings`` so values can be overridden via environment
variables prefixed with ``JSDEPGRAPH_``.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Global settings for the jsdepgraph scanner.

    Attributes:
        app_name: Display name of the application.
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        default_blacklist: Directory/file patterns to skip during crawling.
        max_file_size_bytes: Skip files larger than this threshold.
        wrapper_function_name: Name given to the synthetic function that
            wraps a whole file; never produces a ``declares`` edge.
        anonymous_name_delimiter: Character that marks a synthetic
            (anonymous) function name.
        extension_sentinel: Variable name that triggers the prototypal
            extension pattern.
        require_functions: Call names that introduce module requirements.
        max_depth: Maximum syntax nesting depth the parser converts and
            the walker descends into.  Left-nested operator chains count
            as one level.
        scan_workers: Number of threads used to scan files concurrently.
        fail_fast: Abort the whole run on the first file that fails.
        neo4j_uri: Neo4j ``neo4j://`` or ``neo4j+s://`` connection string.
        neo4j_user: Neo4j database username.
        neo4j_password: Neo4j database password.
        neo4j_database: Neo4j target database name.
        neo4j_batch_size: Batch size for UNWIND operations.
    """

    app_name: str = "jsdepgraph"
    log_level: str = "INFO"
    default_blacklist: list[str] = [
        ".git",
        "node_modules",
        "bower_components",
        "dist",
        "build",
        "coverage",
        ".idea",
        ".vscode",
        "*.min.js",
    ]
    max_file_size_bytes: int = 1_048_576  # 1 MB

    # Relation extraction
    wrapper_function_name: str = "runScript"
    anonymous_name_delimiter: str = ":"
    extension_sentinel: str = "self"
    require_functions: list[str] = ["require", "define"]
    max_depth: int = 200

    # Scan driver
    scan_workers: int = 1
    fail_fast: bool = False

    # Graph export
    neo4j_uri: str = ""
    neo4j_user: str = "neo4j"
    neo4j_password: str = ""
    neo4j_database: str = "neo4j"
    neo4j_batch_size: int = 200

    model_config = {"env_prefix": "JSDEPGRAPH_", "env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()

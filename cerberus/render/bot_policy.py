"""Anubis bot policy document."""

from cerberus.config.types import Config

POLICY_VERSION = "1.0.0"

ALLOW = [
    {"path": "/favicon.ico", "description": "Allow favicon requests"},
    {"path": "/.well-known/*", "description": "Allow well-known paths for certificates, etc."},
    {"path": "/robots.txt", "description": "Allow robots.txt"},
    {"user-agent": "*Googlebot*", "description": "Allow Google crawlers"},
    {"user-agent": "*bingbot*", "description": "Allow Bing crawlers"},
    {"user-agent": "*facebookexternalhit*", "description": "Allow Facebook link previews"},
    {"user-agent": "*Twitterbot*", "description": "Allow Twitter link previews"},
    {"user-agent": "*LinkedInBot*", "description": "Allow LinkedIn link previews"},
    {"user-agent": "*Slackbot*", "description": "Allow Slack link previews"},
]

CHALLENGE = [
    {"user-agent": "Mozilla*", "description": "Challenge typical browser user agents"},
    {"user-agent": "*Chrome*", "description": "Challenge Chrome browsers"},
    {"user-agent": "*Firefox*", "description": "Challenge Firefox browsers"},
    {"user-agent": "*Safari*", "description": "Challenge Safari browsers"},
    {"user-agent": "*Edge*", "description": "Challenge Edge browsers"},
    {
        "path": "/*",
        "rate_limit": {"requests_per_minute": 60, "burst": 10},
        "description": "Rate limit all paths",
    },
]

BLOCK = [
    {"user-agent": "*bot*", "description": "Block generic bots"},
    {"user-agent": "*crawler*", "description": "Block generic crawlers"},
    {"user-agent": "*scraper*", "description": "Block scrapers"},
    {"user-agent": "*wget*", "description": "Block wget"},
    {"user-agent": "*curl*", "description": "Block curl"},
    {"user-agent": "*python*", "description": "Block Python requests"},
    {"path": "/admin*", "description": "Block admin paths"},
    {"path": "/.env*", "description": "Block environment files"},
    {"path": "/wp-*", "description": "Block WordPress paths"},
]


def build_bot_policy(config: Config) -> dict:
    """Allow known crawlers and link previews, challenge browsers, block scrapers."""
    return {
        "ALLOW": ALLOW,
        "CHALLENGE": CHALLENGE,
        "BLOCK": BLOCK,
        "config": {
            "difficulty": config.anubis.difficulty,
            "challenge_ttl": 3600,
            "rate_limit_window": 60,
            "max_challenge_attempts": 3,
            "javascript_challenge": True,
            "proof_of_work": True,
        },
        "metadata": {
            "generated_by": "cerberus",
            "version": POLICY_VERSION,
            "project_name": config.project.name,
            "anubis_enabled": config.anubis.enabled,
        },
    }

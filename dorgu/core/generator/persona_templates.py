BASIC_PERSONA_TEMPLATE = """# {name}

## Overview

{description}{context_section}

## Technical Stack

- **Language:** {language}
- **Framework:** {framework}
- **Type:** {app_type}

## API/Interfaces

{ports_section}

## External Dependencies

{dependencies_section}

## Resource Profile

- **Profile:** {profile}
- **Requests:** {requests}
- **Limits:** {limits}
- **Scaling:** {scaling}

## Health & Monitoring

{health_section}

## Ownership

- **Team:** {team}
- **Contact:** {contact}
- **Repository:** {repository}

## Operational Notes

{operations_section}
"""

APPLICATION_CONTEXT_SECTION = """

## Application Context

{instructions}"""

DEFAULT_DESCRIPTION = "A containerized {app_type} application"
NO_PORTS = "No ports exposed."
NO_DEPENDENCIES = "No external dependencies detected."
NO_SCALING = "No auto-scaling configured"
NO_HEALTH_CHECK = "No health check configured."
NO_OPERATIONS = "*Add operational notes here after deploying the application.*"

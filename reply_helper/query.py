import json
import re

from reply_helper.config import ConnectionConfig
from reply_helper.errors import ConfigurationError

GRAPHQL_NAME = re.compile(r"[_A-Za-z][_0-9A-Za-z]*")

TASK_TEMPLATE = """Based on the following examples of my previous communication, reply to this email: '{email}'

Do it by adjusting the examples of my previous communication. Focus on mimicking my communication style, phrases, and tone of voice.

Don't paraphrase my sentences if not needed. Avoid words that are typical for AI-generated content (e.g, enhance, additionally, moreover, essential, dazzling, dive into, foster, etc.)

Return an answer in a following format:
{{
"answer": Your proposition of the reply I should send to a customer as a string,
"source": most similar email used for the response,
"justification": provide your thought process behind making changes to the email suggested, compared to "used_emails" list. As stated previously, avoid paraphrases and every paraphrase should have a solid justification.
}}"""


def build_task(inbound_email: str) -> str:
    return TASK_TEMPLATE.format(email=inbound_email)


def graphql_string(value: str) -> str:
    # JSON string escaping is a subset of GraphQL string syntax.
    return json.dumps(value, ensure_ascii=False)


def build_query(inbound_email: str, config: ConnectionConfig) -> str:
    if not GRAPHQL_NAME.fullmatch(config.collection):
        raise ConfigurationError(f"Invalid collection name: {config.collection!r}")
    invalid = [name for name in config.return_fields if not GRAPHQL_NAME.fullmatch(name)]
    if invalid or not config.return_fields:
        raise ConfigurationError(f"Invalid return fields: {invalid or config.return_fields!r}")

    near_text = (
        f"concepts: [{graphql_string(inbound_email)}], "
        f"targetVectors: [{graphql_string(config.target_vector)}], "
        f"distance: {float(config.max_distance)}"
    )
    arguments = f"nearText: {{{near_text}}}, limit: {int(config.limit)}"
    if config.category:
        arguments += (
            ', where: {path: ["category"], operator: Equal, '
            f"valueText: {graphql_string(config.category)}}}"
        )

    fields = "\n        ".join(config.return_fields)
    task = graphql_string(build_task(inbound_email))

    return f"""{{
  Get {{
    {config.collection}({arguments}) {{
        {fields}
        _additional {{
          id
          distance
          generate(groupedResult: {{task: {task}}}) {{
            groupedResult
            error
          }}
        }}
    }}
  }}
}}"""


def build_request_body(inbound_email: str, config: ConnectionConfig) -> dict:
    return {"query": build_query(inbound_email, config)}

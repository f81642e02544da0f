"""Builders turning request params and payloads into storage inputs."""

from lrs_backend.inputs.actor import (
    ActivityQueryInput,
    AgentQueryInput,
    activity_query_input,
    actor_ifi,
    agent_query_input,
)
from lrs_backend.inputs.document import (
    DocumentBody,
    DocumentIdsInput,
    DocumentKey,
    DocumentMultiInput,
    document_ids_input,
    document_input,
    document_multi_input,
)
from lrs_backend.inputs.statement import (
    StatementAttachment,
    StatementInsertInput,
    StatementQueryInput,
    add_attachment_insert_inputs,
    add_descendant_insert_inputs,
    statement_insert_input,
    statement_query_input,
)

__all__ = [
    "ActivityQueryInput",
    "AgentQueryInput",
    "DocumentBody",
    "DocumentIdsInput",
    "DocumentKey",
    "DocumentMultiInput",
    "StatementAttachment",
    "StatementInsertInput",
    "StatementQueryInput",
    "activity_query_input",
    "actor_ifi",
    "add_attachment_insert_inputs",
    "add_descendant_insert_inputs",
    "agent_query_input",
    "document_ids_input",
    "document_input",
    "document_multi_input",
    "statement_insert_input",
    "statement_query_input",
]

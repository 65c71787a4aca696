"""Chorus -- compose conversational agents into chains, fan-outs and votes."""

from chorus.agents import (
    Agent,
    AgentStream,
    create_agent,
    create_mcp_agent,
    create_tool_agent,
    run_query,
)
from chorus.engine import ProviderEngine, QueryEngine, get_default_engine, set_default_engine
from chorus.orchestration import (
    AgentOrchestrator,
    AgentSpec,
    ConsensusResult,
    DelegateSpec,
    PipelineResult,
    PipelineStage,
    run_consensus_agents,
    run_parallel_agents,
    run_pipeline,
    run_sequential_chain,
    run_with_supervisor,
)
from chorus.types import AgentConfig, AgentResult, HandoffRecord, PermissionMode, TokenUsage

__version__ = "0.1.0"

__all__ = [
    "Agent",
    "AgentConfig",
    "AgentOrchestrator",
    "AgentResult",
    "AgentSpec",
    "AgentStream",
    "ConsensusResult",
    "DelegateSpec",
    "HandoffRecord",
    "PermissionMode",
    "PipelineResult",
    "PipelineStage",
    "ProviderEngine",
    "QueryEngine",
    "TokenUsage",
    "__version__",
    "create_agent",
    "create_mcp_agent",
    "create_tool_agent",
    "get_default_engine",
    "run_consensus_agents",
    "run_parallel_agents",
    "run_pipeline",
    "run_query",
    "run_sequential_chain",
    "run_with_supervisor",
    "set_default_engine",
]

"""Agent registry and composition strategies."""

from chorus.orchestration.chains import (
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
from chorus.orchestration.orchestrator import AgentOrchestrator

__all__ = [
    "AgentOrchestrator",
    "AgentSpec",
    "ConsensusResult",
    "DelegateSpec",
    "PipelineResult",
    "PipelineStage",
    "run_consensus_agents",
    "run_parallel_agents",
    "run_pipeline",
    "run_sequential_chain",
    "run_with_supervisor",
]

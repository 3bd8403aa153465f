"""Request Resilience Implementations.

Contains the retry policy, failure classification and the dispatcher that
sends Core requests with bounded, jittered backoff.
Bounded Context: Request Resilience
"""

"""API Resilience Implementations.

Contains the backoff policy and the retry engine that wraps every
transport call.
Bounded Context: API Resilience
"""

"""Cooperative thread kernel with FCFS, priority and round-robin schedulers, timers,
semaphores, reader/writer locks, plain containers and a randomised knapsack filler."""

__version__ = "0.1.0"
"""
Cache Services Module

Cache-aside executors, the deferred task scheduler, the cache manager and
its decorator and lifecycle front-ends.
"""

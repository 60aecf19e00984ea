"""Redis Lua scripts for the cache lease."""

# Compare-and-delete: release the lease only while we still hold it, so a
# caller whose lease already expired never removes a newer holder's lease.
#
# KEYS[1] = lease key
# ARGV[1] = holder token written at acquisition
#
# Returns 1 if the lease was released, 0 otherwise
RELEASE_LOCK_SCRIPT = """
    if redis.call('GET', KEYS[1]) == ARGV[1] then
        return redis.call('DEL', KEYS[1])
    end
    return 0
"""

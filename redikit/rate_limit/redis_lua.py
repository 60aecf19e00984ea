"""Redis Lua scripts for the atomic rate limiting strategies.

Each script runs as a single indivisible step on the Redis server, so no
other client can observe or interleave with the read-modify-write it
performs on the per-key record.
"""

# Sliding window over a sorted set of request ids scored by timestamp (ms).
#
# KEYS[1] = sorted set key
# ARGV[1] = window start in ms (now - window); strictly older entries are pruned
# ARGV[2] = now in ms, used as the score of the new entry
# ARGV[3] = limit
# ARGV[4] = unique member id, so two requests in the same ms don't collide
# ARGV[5] = key TTL in seconds (the window length)
# ARGV[6] = "1" to admit and record the request, "0" to only prune and count
#
# Returns {allowed (0/1), count after the operation}
SLIDING_WINDOW_SCRIPT = """
    local key = KEYS[1]
    local window_start = ARGV[1]
    local now_ms = ARGV[2]
    local limit = tonumber(ARGV[3])
    local member = ARGV[4]
    local ttl = tonumber(ARGV[5])
    local consume = ARGV[6] == "1"

    -- Drop entries older than the window start; the boundary itself stays
    redis.call('ZREMRANGEBYSCORE', key, '-inf', '(' .. window_start)

    local count = redis.call('ZCARD', key)

    if not consume then
        if count < limit then
            return {1, count}
        end
        return {0, count}
    end

    local allowed = 0
    if count < limit then
        redis.call('ZADD', key, now_ms, member)
        allowed = 1
        count = count + 1
    end

    -- Any surviving entry leaves the window within ttl seconds
    redis.call('EXPIRE', key, ttl)

    return {allowed, count}
"""

# Token bucket stored as a hash {tokens, last_refill}.
#
# KEYS[1] = hash key
# ARGV[1] = capacity
# ARGV[2] = refill rate in tokens per second
# ARGV[3] = now in ms
# ARGV[4] = "1" to consume a token, "0" to peek
# ARGV[5] = TTL buffer in seconds added to the full-refill time
#
# Returns {allowed (0/1), whole tokens remaining}
TOKEN_BUCKET_SCRIPT = """
    local key = KEYS[1]
    local capacity = tonumber(ARGV[1])
    local refill_rate = tonumber(ARGV[2])
    local now_ms = tonumber(ARGV[3])
    local consume = ARGV[4] == "1"
    local ttl_buffer = tonumber(ARGV[5])

    local tokens = tonumber(redis.call('HGET', key, 'tokens'))
    local last_refill = tonumber(redis.call('HGET', key, 'last_refill'))

    -- A missing bucket starts full
    if tokens == nil or last_refill == nil then
        tokens = capacity
        last_refill = now_ms
    end

    -- Never move last_refill backwards when client clocks disagree
    local elapsed_ms = math.max(0, now_ms - last_refill)
    tokens = math.min(capacity, tokens + (elapsed_ms / 1000) * refill_rate)
    last_refill = math.max(last_refill, now_ms)

    if not consume then
        if tokens >= 1 then
            return {1, math.floor(tokens)}
        end
        return {0, math.floor(tokens)}
    end

    local allowed = 0
    if tokens >= 1 then
        tokens = tokens - 1
        allowed = 1
    end

    redis.call('HSET', key, 'tokens', tostring(tokens), 'last_refill', tostring(last_refill))
    redis.call('EXPIRE', key, math.ceil(capacity / refill_rate) + ttl_buffer)

    return {allowed, math.floor(tokens)}
"""

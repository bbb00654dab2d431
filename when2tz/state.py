from typing import Optional
import redis.asyncio as redis
from when2tz.scheduling.service import ScheduleService
from when2tz.store.base import ScheduleStore

# Global runtime state initialized in lifespan.setup_resources
redis_client: Optional[redis.Redis] = None
store: Optional[ScheduleStore] = None
schedule_service: Optional[ScheduleService] = None

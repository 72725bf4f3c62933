import sys, os
ROOT = os.path.dirname(__file__)
SRC = os.path.join(ROOT, 'src')
if SRC not in sys.path:
    sys.path.insert(0, SRC)
import logging

from match3.config import EngineConfig
from match3.engine import Match3Engine
from match3.events.bus import EVENT_CASCADE_STEP, EVENT_CASCADE_SETTLED, EVENT_SWAP_REJECTED

logging.basicConfig(level=logging.DEBUG, format='%(name)s %(message)s')


def dump(engine):
    for row in engine.snapshot():
        print(' '.join(f'{kind:>6}' for kind in row))


engine = Match3Engine(EngineConfig(side=6), seed=int(sys.argv[1]) if len(sys.argv) > 1 else 0)
engine.event_bus.subscribe(EVENT_CASCADE_STEP, lambda s, **k: print(
    'step', k['depth'], 'removed', len(k['step'].removed),
    'drops', len(k['step'].drops), 'spawned', len(k['step'].spawned)))
engine.event_bus.subscribe(EVENT_CASCADE_SETTLED, lambda s, **k: print('settled', k))
engine.event_bus.subscribe(EVENT_SWAP_REJECTED, lambda s, **k: print('rejected', k['reason'].name))

dump(engine)
hint = engine.hint()
print('hint', hint)
if hint:
    engine.activate(*hint[0])
    engine.activate(*hint[1])
    # Pretend the renderer finishes animations one step at a time.
    while engine.busy:
        engine.animation_complete(count=engine.cascade_system.state.outstanding)
    print('score', engine.score)
    dump(engine)

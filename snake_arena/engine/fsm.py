from __future__ import annotations

from dataclasses import replace

from statemachine import State, StateMachine

from snake_arena.engine.state import GameSession, SessionPhase


class SessionFSM(StateMachine):
    """FSM wrapper around GameSession.

    Only guards phase transitions; the session module applies the actual rules:
    - idle/paused -> running (resume)
    - running -> paused (pause)
    - running -> game_over (crash)
    - game_over -> running (restart, on a freshly reset session)
    """

    idle = State(SessionPhase.idle.value, value=SessionPhase.idle.value, initial=True)
    running = State(SessionPhase.running.value, value=SessionPhase.running.value)
    paused = State(SessionPhase.paused.value, value=SessionPhase.paused.value)
    game_over = State(SessionPhase.game_over.value, value=SessionPhase.game_over.value)

    resume = idle.to(running) | paused.to(running)
    pause = running.to(paused)
    crash = running.to(game_over)
    restart = game_over.to(running)

    def __init__(self, session: GameSession):
        self.session = session
        super().__init__(start_value=session.phase.value)

    def current_phase(self) -> SessionPhase:
        return SessionPhase(str(self.current_state.value))

    def synced_session(self) -> GameSession:
        return replace(self.session, phase=self.current_phase())


def transition(session: GameSession, event: str) -> GameSession:
    """Fire `event` against the session's phase and return the updated session.

    Raises `statemachine.exceptions.TransitionNotAllowed` for an illegal event.
    """

    fsm = SessionFSM(session)
    fsm.send(event)
    return fsm.synced_session()

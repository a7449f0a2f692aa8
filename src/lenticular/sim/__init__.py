from lenticular.sim.parallax import frame_positions, render_simulation_frame

__all__ = ["frame_positions", "render_simulation_frame"]

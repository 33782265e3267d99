class Params:
    """
    All tunable knobs live here so you don't hunt through code.
    """
    def __init__(self, **overrides):
        # Particle buffer capacity (hard upper bound, never resized)
        self.max_particles = 50000

        # Shapes
        self.nebula_radius = 25.0
        self.heart_scale = 1.5

        # Animation
        self.diffusion_scale = 50.0        # diffusion slider 1.0 => +-25 units of jitter
        self.lerp_factor = 0.04            # ~25 frame time constant
        self.group_rotation_speed = 0.0005       # rad / frame
        self.background_rotation_speed = 0.0001  # rad / frame

        # Background star field
        self.star_count = 5000
        self.star_extent = 1000.0

        # UI defaults
        self.particle_density = 0.6
        self.diffusion = 0.5
        self.particle_color = "#00ffff"
        self.shape = "nebula"

        # Gesture input
        self.gesture_interval_sec = 0.1
        self.smoothing_keep = 0.8          # smoothed' = smoothed*keep + raw*(1-keep)
        self.neutral_openness = 0.5
        self.openness_min_px = 50.0
        self.openness_max_px = 250.0
        self.capture_width = 640
        self.capture_height = 480

        # View
        self.window_width = 1280
        self.window_height = 720
        self.fov_deg = 75.0
        self.camera_z = 50.0
        self.point_size_px = 1

        # "numpy" or "taichi"
        self.backend = "numpy"

        # None => fresh entropy every run
        self.seed = None

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise AttributeError(f"Unknown parameter: {key}")
            setattr(self, key, value)


def pget(p, key, default=None):
    if p is None:
        return default
    if isinstance(p, dict):
        return p.get(key, default)
    return getattr(p, key, default)


# Module-level defaults for code that takes an optional params object
DEFAULTS = Params()

"""
Runner Configuration
====================
Tunable constants for gesture classification and the runner simulation.

Both classes are plain attribute holders. Instantiate them and override
attributes (or let ``GameSettings.apply_to`` do it) to tune the game:

    config = GestureConfig()
    config.MOVE_THRESHOLD = 0.06
"""


class GestureConfig:
    """Configuration for hand tracking and gesture classification."""

    # Camera
    CAMERA_INDEX = 0
    CAMERA_WIDTH = 424
    CAMERA_HEIGHT = 240

    # Detection is throttled to this many processed frames per second
    MAX_FPS = 20

    # Detection confidence
    MIN_DETECTION_CONFIDENCE = 0.6
    MIN_TRACKING_CONFIDENCE = 0.6

    # Index fingertip
    FINGERTIP_LANDMARK = 8

    # Fingertip smoothing (0 = frozen, 1 = raw)
    SMOOTHING_ALPHA = 0.45

    # Anchor displacement needed to fire (normalized units)
    MOVE_THRESHOLD = 0.045

    # Dominant axis must be this much larger than the other one
    AXIS_BIAS = 1.1

    # Minimum time between two emitted gestures (seconds)
    GESTURE_COOLDOWN = 0.22

    # Anchor recentering while no gesture fires
    ANCHOR_RECENTER_SLOW = 0.02
    ANCHOR_RECENTER_FAST = 0.08
    ANCHOR_IDLE_TIME = 0.25

    # Camera preview is mirrored, so horizontal motion is inverted
    MIRROR_X = True

    # Model
    MODEL_PATH = "hand_landmarker.task"
    MODEL_URL = "https://storage.googleapis.com/mediapipe-models/hand_landmarker/hand_landmarker/float16/latest/hand_landmarker.task"


class RunnerConfig:
    """Configuration for the runner simulation. Distances are in pixels at scale 1."""

    # Speed (px/s)
    SPEED_START = 620.0
    SPEED_MAX = 1550.0
    SPEED_RAMP = 26.0

    # Seconds between obstacle spawns, drawn uniformly per spawn
    SPAWN_MIN = 0.52
    SPAWN_MAX = 1.05

    # Jump physics
    GRAVITY = 3200.0
    JUMP_VELOCITY = 1180.0

    # Lateral easing rate (1/s) and snap distance (px)
    LANE_LERP = 14.0
    LANE_SNAP_EPSILON = 0.5

    SLIDE_DURATION = 0.55

    # Debounce on the player's own actions, independent of the classifier cooldown
    MIN_ACTION_INTERVAL = 0.18

    # Coins
    COIN_CHANCE = 0.55
    COIN_SAME_LANE_CHANCE = 0.7
    COIN_RADIUS = 14.0
    COIN_BONUS = 55

    SCORE_RATE = 12.0

    # Longest step the simulation will integrate
    MAX_DT = 0.034

    # Spawn offsets above the track top and cull margins below the viewport
    OBSTACLE_SPAWN_OFFSET = 140.0
    COIN_SPAWN_OFFSET = 220.0
    OBSTACLE_EXIT_MARGIN = 220.0
    COIN_EXIT_MARGIN = 160.0

    # Player size
    PLAYER_WIDTH = 56.0
    PLAYER_STAND_HEIGHT = 98.0
    PLAYER_SLIDE_HEIGHT = 58.0

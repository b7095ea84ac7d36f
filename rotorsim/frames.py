"""
Coordinate Frame Transformations

This module handles rotations between the two frames the simulator uses:
- World: Y-up, X and Z horizontal. Terrain is queried as height_at(x, z)
- Body: X left, Y up (thrust axis), Z forward (nose)

Attitude is carried as a unit quaternion. Euler angles are only used for
controller feedback and display:
- roll: rotation about body Z, positive tilts thrust to the right (-X)
- pitch: rotation about body X, positive tilts thrust forward (+Z)
- yaw: rotation about world Y, zero faces +Z, bearing = atan2(dx, dz)

Convention: quaternion q = [w, x, y, z] where w is the scalar part
"""

import numpy as np
from typing import Tuple
from dataclasses import dataclass


@dataclass
class Quaternion:
    """
    Unit quaternion for attitude representation.
    q = w + xi + yj + zk, stored as [w, x, y, z]

    Represents rotation from Body frame to World frame.
    """
    w: float
    x: float
    y: float
    z: float

    def __post_init__(self):
        """Normalize on creation to ensure unit quaternion."""
        self._normalize()

    def _normalize(self):
        """Normalize to unit quaternion."""
        norm = np.sqrt(self.w**2 + self.x**2 + self.y**2 + self.z**2)
        if norm > 1e-10:
            self.w /= norm
            self.x /= norm
            self.y /= norm
            self.z /= norm
        else:
            self.w, self.x, self.y, self.z = 1.0, 0.0, 0.0, 0.0

    @property
    def norm(self) -> float:
        return float(np.sqrt(self.w**2 + self.x**2 + self.y**2 + self.z**2))

    @classmethod
    def identity(cls) -> 'Quaternion':
        return cls(1.0, 0.0, 0.0, 0.0)

    @classmethod
    def from_euler(cls, roll: float, pitch: float, yaw: float) -> 'Quaternion':
        """
        Create quaternion from Euler angles.

        The rotation is R = R_y(yaw) @ R_x(pitch) @ R_z(roll).

        Args:
            roll: Rotation about body Z (rad)
            pitch: Rotation about body X (rad)
            yaw: Rotation about world Y (rad)

        Returns:
            Quaternion representing the rotation
        """
        q_yaw = cls(np.cos(yaw / 2), 0.0, np.sin(yaw / 2), 0.0)
        q_pitch = cls(np.cos(pitch / 2), np.sin(pitch / 2), 0.0, 0.0)
        q_roll = cls(np.cos(roll / 2), 0.0, 0.0, np.sin(roll / 2))
        return q_yaw * q_pitch * q_roll

    @classmethod
    def from_rotation_vector(cls, rotation: np.ndarray) -> 'Quaternion':
        """
        Create quaternion from a rotation vector (axis * angle).

        Used to compose the per-tick rotation omega * dt.
        """
        rotation = np.asarray(rotation, dtype=np.float64)
        angle = np.linalg.norm(rotation)
        if angle < 1e-12:
            # First-order expansion keeps tiny rotations exact enough
            half = 0.5 * rotation
            return cls(1.0, half[0], half[1], half[2])
        axis = rotation / angle
        s = np.sin(angle / 2)
        return cls(np.cos(angle / 2), axis[0] * s, axis[1] * s, axis[2] * s)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> 'Quaternion':
        """Create quaternion from numpy array [w, x, y, z]."""
        return cls(arr[0], arr[1], arr[2], arr[3])

    def to_array(self) -> np.ndarray:
        """Return quaternion as numpy array [w, x, y, z]."""
        return np.array([self.w, self.x, self.y, self.z])

    def to_euler(self) -> Tuple[float, float, float]:
        """
        Convert quaternion to Euler angles.

        Returns:
            (roll, pitch, yaw) in radians

        Note: Has singularity at pitch = ±90° (gimbal lock).
              Use quaternion directly for computations.
        """
        m = self.to_dcm()

        # R = R_y(yaw) R_x(pitch) R_z(roll)  =>  m[1, 2] = -sin(pitch)
        pitch = np.arcsin(np.clip(-m[1, 2], -1.0, 1.0))

        if abs(m[1, 2]) < 0.9999999:
            yaw = np.arctan2(m[0, 2], m[2, 2])
            roll = np.arctan2(m[1, 0], m[1, 1])
        else:
            yaw = np.arctan2(-m[2, 0], m[0, 0])
            roll = 0.0

        return float(roll), float(pitch), float(yaw)

    def to_dcm(self) -> np.ndarray:
        """
        Convert to Direction Cosine Matrix (rotation matrix).

        Returns:
            3x3 rotation matrix R_body_to_world
            v_world = R @ v_body
        """
        w, x, y, z = self.w, self.x, self.y, self.z

        return np.array([
            [1 - 2*(y**2 + z**2),     2*(x*y - w*z),     2*(x*z + w*y)],
            [    2*(x*y + w*z), 1 - 2*(x**2 + z**2),     2*(y*z - w*x)],
            [    2*(x*z - w*y),     2*(y*z + w*x), 1 - 2*(x**2 + y**2)]
        ])

    def conjugate(self) -> 'Quaternion':
        """Return conjugate (inverse for unit quaternions)."""
        return Quaternion(self.w, -self.x, -self.y, -self.z)

    def __mul__(self, other: 'Quaternion') -> 'Quaternion':
        """Quaternion multiplication (Hamilton product)."""
        w1, x1, y1, z1 = self.w, self.x, self.y, self.z
        w2, x2, y2, z2 = other.w, other.x, other.y, other.z

        return Quaternion(
            w1*w2 - x1*x2 - y1*y2 - z1*z2,
            w1*x2 + x1*w2 + y1*z2 - z1*y2,
            w1*y2 - x1*z2 + y1*w2 + z1*x2,
            w1*z2 + x1*y2 - y1*x2 + z1*w2
        )

    def rotate_vector(self, v: np.ndarray) -> np.ndarray:
        """
        Rotate a vector from body frame to world frame.

        Args:
            v: 3D vector in body frame

        Returns:
            3D vector in world frame
        """
        return self.to_dcm() @ v

    def inverse_rotate_vector(self, v: np.ndarray) -> np.ndarray:
        """
        Rotate a vector from world frame to body frame.

        Args:
            v: 3D vector in world frame

        Returns:
            3D vector in body frame
        """
        return self.to_dcm().T @ v

    def up_vector(self) -> np.ndarray:
        """Body +Y (thrust axis) expressed in the world frame."""
        return self.to_dcm()[:, 1]

    def copy(self) -> 'Quaternion':
        return Quaternion(self.w, self.x, self.y, self.z)


def wrap_angle(angle: float) -> float:
    """Wrap an angle into [-pi, pi]."""
    while angle > np.pi:
        angle -= 2 * np.pi
    while angle < -np.pi:
        angle += 2 * np.pi
    return angle


def bearing(from_xz: np.ndarray, to_xz: np.ndarray) -> float:
    """
    Heading (rad) that points from one horizontal position to another.

    Args:
        from_xz: (x, z) start position
        to_xz: (x, z) target position

    Returns:
        Yaw angle in the simulator's heading convention
    """
    dx = to_xz[0] - from_xz[0]
    dz = to_xz[1] - from_xz[1]
    return float(np.arctan2(dx, dz))


def horizontal(v: np.ndarray) -> np.ndarray:
    """Project a world vector onto the (x, z) plane."""
    return np.array([v[0], v[2]])

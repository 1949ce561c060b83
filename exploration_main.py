#!/usr/bin/env python3
"""
Confidence Map - Synthetic Exploration Runner

Drives a virtual ground robot through a synthetic scene and feeds the
confidence mapper the same way a live system would:

  odometry @ ODOM_RAW_HZ                    -> ConfidenceMapper.handle_odometry
  ground / boundary / obstacle scans @ 2 Hz -> add_*_points

Scene:
- Flat ground 30m x 30m around the start position
- A wall along x = WALL_X (boundary points at its foot, obstacle points above)
- The robot drives a straight line past the wall

Usage:
  python exploration_main.py --frames 400 --snapshot-dir out/
  python exploration_main.py --config params.json --seed 7
"""

import argparse
import os
import random
import sys
from typing import Dict, Optional, Tuple

import cv2
import numpy as np

from confidence_map.config import load_config
from confidence_map.mapper import ConfidenceMapper
from confidence_map.primitives import normalize

# Scene
SCENE_HALF_SIZE = 15.0
GROUND_SPACING = 0.1
WALL_X = 4.0
WALL_HALF_LENGTH = 6.0
WALL_HEIGHT = 2.0
SENSOR_RANGE = 6.0
SENSOR_HEIGHT = 1.0

# Run
ROBOT_SPEED = 0.5         # m/s
FRAMES_PER_EPOCH = 200    # raw odometry frames per exploration round
SCAN_EVERY_N_FRAMES = 25  # point clouds arrive at 2 Hz


class SyntheticScene:
    """Static point sets, cropped to the sensor range on every scan."""

    def __init__(self, rng: np.random.Generator):
        axis = np.arange(-SCENE_HALF_SIZE, SCENE_HALF_SIZE, GROUND_SPACING)
        gx, gy = np.meshgrid(axis, axis, indexing="ij")
        noise = rng.normal(0.0, 0.01, gx.size)
        self.ground = np.column_stack([gx.ravel(), gy.ravel(), noise])
        # no ground behind the wall face
        self.ground = self.ground[self.ground[:, 0] < WALL_X - 0.1]

        wall_y = np.arange(-WALL_HALF_LENGTH, WALL_HALF_LENGTH, GROUND_SPACING)
        self.boundary = np.column_stack([np.full(wall_y.size, WALL_X), wall_y,
                                         np.full(wall_y.size, 0.05)])

        wall_z = np.arange(0.2, WALL_HEIGHT, 0.2)
        wy, wz = np.meshgrid(wall_y, wall_z, indexing="ij")
        self.obstacle = np.column_stack([np.full(wy.size, WALL_X), wy.ravel(), wz.ravel()])

    @staticmethod
    def _crop(points: np.ndarray, position: np.ndarray) -> np.ndarray:
        d = np.linalg.norm(points[:, :2] - position[:2], axis=1)
        return points[d <= SENSOR_RANGE]

    def scan(self, position: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        return (self._crop(self.ground, position),
                self._crop(self.boundary, position),
                self._crop(self.obstacle, position))


class ExplorationRun:
    """Feeds the mapper from the synthetic scene and reports coverage."""

    def __init__(self, config_path: Optional[str] = None, seed: int = 0, **overrides):
        self.config = load_config(config_path, **overrides)
        self.mapper = ConfidenceMapper(self.config, rng=random.Random(seed))
        self.scene = SyntheticScene(np.random.default_rng(seed))

        self.start = np.array([-6.0, -8.0, 0.0])
        self.goal = np.array([0.0, 6.0, 0.0])
        self.dt = 1.0 / self.config.odom_raw_hz

    def position_at(self, frame: int) -> np.ndarray:
        travel = self.goal - self.start
        length = float(np.linalg.norm(travel))
        s = min(length, ROBOT_SPEED * frame * self.dt)
        return self.start + travel * (s / length)

    def run(self, frames: int) -> Dict[str, float]:
        processed = 0
        visibility_passes = 0
        if not self.mapper.ready:
            self.mapper.initialize(self.position_at(0))

        for frame in range(frames):
            position = self.position_at(frame)
            if frame % SCAN_EVERY_N_FRAMES == 0:
                ground, boundary, obstacle = self.scene.scan(position)
                self.mapper.add_ground_points(ground)
                self.mapper.add_boundary_points(boundary)
                self.mapper.add_obstacle_points(obstacle)
            report = self.mapper.handle_odometry(position)

            if report is not None:
                processed += 1
                visibility_passes += int(report.visibility_pass)

            if frame and frame % FRAMES_PER_EPOCH == 0:
                self.mapper.advance_epoch()

        confidence = self.mapper.layers()["confidence"]
        return {
            "frames": frames,
            "processed": processed,
            "visibility_passes": visibility_passes,
            "travelable_cells": self.mapper.travelable_count(),
            "max_confidence": float(confidence.max()),
            "epoch": self.mapper.node_times,
        }

    def save_snapshots(self, directory: str) -> None:
        """Write every layer as a colour-mapped PNG."""
        os.makedirs(directory, exist_ok=True)
        for name, layer in self.mapper.layers().items():
            values = layer.astype(float).ravel()
            normalize(values)
            image = (values.reshape(layer.shape) * 255.0).astype(np.uint8)
            colored = cv2.applyColorMap(image, cv2.COLORMAP_JET)
            filename = os.path.join(directory, f"{name}.png")
            cv2.imwrite(filename, colored)
            print(f"Saved: {filename}")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Run the confidence map on a synthetic scene")
    parser.add_argument("--frames", type=int, default=1500, help="raw odometry frames to simulate")
    parser.add_argument("--config", default=None, help="JSON file with configuration overrides")
    parser.add_argument("--seed", type=int, default=0, help="random seed")
    parser.add_argument("--snapshot-dir", default=None, help="write layer PNGs here")
    args = parser.parse_args()

    try:
        run = ExplorationRun(args.config, seed=args.seed, map_max_range=SCENE_HALF_SIZE,
                             view_z_offset=SENSOR_HEIGHT)
        stats = run.run(args.frames)
        print(f"[RUN] {stats}")
        if args.snapshot_dir:
            run.save_snapshots(args.snapshot_dir)
    except KeyboardInterrupt:
        print("\nRun interrupted by user.")
    except Exception as e:
        print(f"Error: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
